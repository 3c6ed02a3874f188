import streamlit as st
import pandas as pd
import asyncio
import logging
import concurrent.futures
from datetime import date
import matplotlib.pyplot as plt
import pydeck as pdk

# Attempt to import project modules.
# This assumes the package is installed (pip install -e .) before `streamlit run eonet_monitor/app.py`.
try:
    from eonet_monitor.config import (
        FEEDS, EMISSIONS_CSV_PATH, LOG_FORMAT, LOG_LEVEL, MAX_RISK_LEVEL, DISPLAY_TIMEZONE,
        REFRESH_INTERVAL_SECONDS, UI_POLL_SECONDS,
    )
    from eonet_monitor.errors import MonitorError
    from eonet_monitor.data_collection.collector import make_feed_fetcher
    from eonet_monitor.data_collection.emissions import load_emissions_csv, country_names, country_series, latest_record
    from eonet_monitor.data_collection.normalizer import observations_to_frame
    from eonet_monitor.aggregation.regions import filter_by_region, region_names
    from eonet_monitor.aggregation.time_buckets import daily_counts_frame
    from eonet_monitor.risk_assessment.assessor import (
        RiskRecord, filter_by_risk_levels, risk_records_to_frame, summarize_risk_levels,
    )
    from eonet_monitor.risk_assessment.alerts import alert_authorities, notify_base_station
    from eonet_monitor.refresh.background import BackgroundRefresher
    from eonet_monitor.refresh.scheduler import RefreshScheduler, run_pipeline
except ModuleNotFoundError:
    st.error("Error importing project modules. Install the project with 'pip install -e .' first.")
    st.stop() # Stop Streamlit script execution

logging.basicConfig(level=LOG_LEVEL, format=LOG_FORMAT)
logger = logging.getLogger(__name__)

RISK_TABLE_COLUMNS = ['title', 'timestamp', 'latitude', 'longitude', 'risk_level']


@st.cache_resource # One background loop and one scheduler per feed for the whole server process
def get_schedulers() -> tuple[BackgroundRefresher, dict[str, RefreshScheduler]]:
    refresher = BackgroundRefresher()
    schedulers = {}
    for feed_name, feed in FEEDS.items():
        scheduler = RefreshScheduler(
            make_feed_fetcher(feed["category"], status=feed["status"]),
            interval_seconds=feed["interval"],
            name=feed_name,
        )
        schedulers[feed_name] = refresher.add(scheduler)
    return refresher, schedulers


@st.cache_data # Cache to avoid re-parsing the CSV on every rerun
def load_emissions(csv_path: str) -> pd.DataFrame | None:
    try:
        return load_emissions_csv(csv_path)
    except FileNotFoundError:
        st.error(f"CSV file not found at: {csv_path}")
        return None


@st.cache_data(ttl=REFRESH_INTERVAL_SECONDS, show_spinner="Fetching volcano events for the selected date...")
def load_volcanoes_on(day_iso: str) -> list[RiskRecord]:
    """Volcano events active on a past day, scored against the current time. Errors are not cached."""
    feed = FEEDS["volcanoes"]
    fetch_feed = make_feed_fetcher(feed["category"], status=feed["status"], date=day_iso)
    _, risk_records = asyncio.run(run_pipeline(fetch_feed))
    return risk_records


def today_in_display_zone() -> date:
    return pd.Timestamp.now(tz=DISPLAY_TIMEZONE).date()


def show_refresh_status(scheduler: RefreshScheduler):
    """Non-blocking status line: last update, or a warning when the last refresh failed."""
    status = scheduler.status
    if status.has_error:
        if status.last_success_at:
            st.warning(f"Latest refresh failed ({status.error_message}). "
                       f"Showing data from {status.last_success_at.strftime('%d/%m/%Y %H:%M:%S')} UTC; retrying automatically.")
        else:
            st.warning(f"Could not load the feed yet ({status.error_message}). Retrying automatically.")
    elif status.last_success_at:
        st.caption(f"Last update: {status.last_success_at.strftime('%d/%m/%Y %H:%M:%S')} UTC")


def show_volcano_map(risk_df: pd.DataFrame):
    try:
        view_state = pdk.ViewState(
            latitude=float(risk_df['latitude'].iloc[0]),
            longitude=float(risk_df['longitude'].iloc[0]),
            zoom=2,
        )
        scatterplot_layer = pdk.Layer(
            "ScatterplotLayer",
            data=risk_df[['title', 'latitude', 'longitude', 'risk_level', 'color']],
            get_position=['longitude', 'latitude'],
            get_fill_color="color",
            get_radius=40000,
            pickable=True,
            radius_min_pixels=5,
            radius_max_pixels=30,
        )
        st.pydeck_chart(pdk.Deck(
            layers=[scatterplot_layer],
            initial_view_state=view_state,
            tooltip={
                "html": "<b>{title}</b><br/><b>Risk Level:</b> {risk_level}/" + str(MAX_RISK_LEVEL),
                "style": {"color": "white"}
            }
        ))
    except Exception as e:
        st.error(f"Error generating PyDeck map: {e}")


# Each live view is a fragment that re-runs on its own timer and re-reads the latest snapshot

@st.fragment(run_every=UI_POLL_SECONDS)
def fire_view(fire_scheduler: RefreshScheduler):
    show_refresh_status(fire_scheduler)

    selected_region = st.selectbox("Region:", region_names(), key="fire_region")
    observations = filter_by_region(fire_scheduler.get_current_observations(), selected_region)

    if st.button("🚨 Notify Base Station", key="notify_base_station"):
        st.success(notify_base_station(selected_region, observations))

    if observations:
        st.markdown("##### Fire Events per Day")
        st.line_chart(daily_counts_frame(fire_scheduler.get_daily_counts(selected_region)))

        fire_df = observations_to_frame(observations)
        st.markdown("##### Latest Fire Data")
        st.dataframe(fire_df.sort_values(by='timestamp', ascending=False).head(10))

        st.markdown("#### 🗺️ Fire Locations")
        st.map(fire_df.rename(columns={'latitude': 'lat', 'longitude': 'lon'})[['lat', 'lon']])
    elif fire_scheduler.snapshot.published_at is None and not fire_scheduler.status.has_error:
        st.info("Loading fire events...")
    else:
        st.info(f"No fire data available for {selected_region}.")


@st.fragment(run_every=UI_POLL_SECONDS)
def volcano_view(volcano_scheduler: RefreshScheduler):
    today = today_in_display_zone()
    selected_day = st.date_input("Select Date:", value=today, max_value=today, key="volcano_date")

    if selected_day >= today:
        show_refresh_status(volcano_scheduler)
        risk_records = list(volcano_scheduler.get_risk_records())
        loading = volcano_scheduler.snapshot.published_at is None and not volcano_scheduler.status.has_error
    else:
        try:
            risk_records = load_volcanoes_on(selected_day.isoformat())
        except MonitorError as e:
            logger.warning(f"Volcano feed for {selected_day} failed: {e}")
            st.warning(f"Could not load volcano events for {selected_day.strftime('%d/%m/%Y')} ({e}).")
            return
        loading = False

    if not risk_records:
        st.info("Loading volcano data..." if loading else "No open volcano events.")
        return

    map_col, list_col = st.columns([7, 3])
    with map_col:
        show_volcano_map(risk_records_to_frame(risk_records))
        st.markdown("##### Risk Level Summary")
        st.bar_chart(summarize_risk_levels(risk_records))

    with list_col:
        st.markdown("##### Volcano List")
        for record in risk_records:
            with st.container(border=True):
                st.markdown(f"**{record.title}**")
                st.write(f"Risk Level: {record.risk_level}/{MAX_RISK_LEVEL}")
                if st.button("Alert Authorities", key=f"alert_{selected_day}_{record.event_id}"):
                    st.success(alert_authorities(record))


@st.fragment(run_every=UI_POLL_SECONDS)
def alerts_view(volcano_scheduler: RefreshScheduler):
    available_risk_levels = list(range(1, MAX_RISK_LEVEL + 1))
    selected_risk_levels = st.multiselect(
        "Risk levels to show:",
        options=available_risk_levels,
        default=[MAX_RISK_LEVEL - 1, MAX_RISK_LEVEL], # Default to the two highest levels
        key="alert_levels",
    )

    if not selected_risk_levels:
        st.warning("Select at least one risk level to show alerts.")
        return

    alerts = filter_by_risk_levels(volcano_scheduler.get_risk_records(), selected_risk_levels)
    if alerts:
        st.metric(label="Volcanoes at Selected Risk", value=len(alerts))
        st.dataframe(risk_records_to_frame(alerts)[RISK_TABLE_COLUMNS])
    elif volcano_scheduler.snapshot.published_at is None:
        st.info("Volcano data has not loaded yet.")
    else:
        levels = ', '.join(str(level) for level in sorted(selected_risk_levels))
        st.info(f"No open volcano at risk level(s) {levels}.")


# --- Main App ---
st.set_page_config(layout="wide", page_title="EONET Environmental Monitor")
st.title("🌍 EONET Environmental Monitor")

refresher, schedulers = get_schedulers()

st.sidebar.header("🔄 Live Feeds")
if st.sidebar.button("Refresh now", key="refresh_now"):
    slow_feeds = []
    with st.spinner("Refreshing feeds..."):
        for feed_name, scheduler in schedulers.items():
            try:
                refresher.refresh_now(scheduler, timeout=120)
            except concurrent.futures.TimeoutError:
                logger.warning(f"Manual refresh of '{feed_name}' is still running after 120s")
                slow_feeds.append(feed_name)
    if not slow_feeds:
        st.rerun()
    st.sidebar.warning(f"Still waiting on {', '.join(slow_feeds)}; the view updates when the fetch completes.")

tab1, tab2, tab3, tab4 = st.tabs(["🔥 Fire Detection", "🌋 Volcano Alerts", "🚨 Risk Alerts", "📊 Country Emissions"])


with tab1:
    st.header("🔥 Live Satellite Fire Detection")
    fire_view(schedulers["wildfires"])


with tab2:
    st.header("🌋 Volcano Alert System")
    st.caption("Risk grows by one level for every full week an eruption has been active (1 = lowest, 5 = highest).")
    volcano_view(schedulers["volcanoes"])


with tab3:
    st.header("🚨 High-Risk Volcano Alerts")
    st.caption("Open volcano events at the selected risk levels, highest first.")
    alerts_view(schedulers["volcanoes"])


with tab4:
    st.header("📊 Country-Specific Emissions")
    emissions_df = load_emissions(EMISSIONS_CSV_PATH)

    countries = country_names(emissions_df) if emissions_df is not None else []
    if countries:
        default_index = countries.index("United States") if "United States" in countries else 0
        selected_country = st.selectbox("Country:", countries, index=default_index, key="emissions_country")

        rows = country_series(emissions_df, selected_country)
        latest = latest_record(emissions_df, selected_country)

        if latest is not None:
            metric_cols = st.columns(4)
            metric_cols[0].metric("Year", int(latest['year']))
            metric_cols[1].metric("CO2", f"{latest['co2']:,.2f}")
            metric_cols[2].metric("Methane", f"{latest['methane']:,.2f}")
            metric_cols[3].metric("Nitrous Oxide", f"{latest['nitrous_oxide']:,.2f}")

            fig, ax = plt.subplots()
            ax.plot(rows['year'], rows['co2'], label='CO2 Emissions')
            ax.plot(rows['year'], rows['methane'], label='Methane Emissions')
            ax.plot(rows['year'], rows['nitrous_oxide'], label='Nitrous Oxide Emissions')
            ax.set_xlabel('Year'); ax.set_ylabel('Emissions')
            ax.set_ylim(bottom=0)
            ax.legend()
            st.pyplot(fig)
        else:
            st.info(f"No rows for {selected_country}.")
    elif emissions_df is not None:
        st.warning("The emissions CSV has no country rows.")
