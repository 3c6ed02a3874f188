import pandas as pd
import pytest

from eonet_monitor.data_collection.emissions import (
    coerce_numeric, country_names, country_series, latest_record, load_emissions_csv,
)


@pytest.fixture()
def emissions_csv(tmp_path):
    path = tmp_path / "emissions_data.csv"
    path.write_text(
        "country,year,population,gdp,co2,methane,nitrous_oxide\n"
        "Chile,2020,19116209,,85.2,11.1,3.2\n"
        "Chile,2018,18729160,298000000000,86.0,n/a,3.1\n"
        "Kenya,2019,52573967,95500000000, ,24.0,9.5\n"
        ",2019,,,,,\n"
        "Chile,2019,18952035,279000000000,84.1\n",
        encoding="utf-8",
    )
    return path


def test_coerce_numeric_falls_back_to_zero():
    values = pd.Series(["1.5", "", None, "abc", "2", "NaN"])
    assert list(coerce_numeric(values)) == [1.5, 0.0, 0.0, 0.0, 2.0, 0.0]


def test_coerce_numeric_custom_fallback():
    assert list(coerce_numeric(pd.Series(["x"]), fallback=-1.0)) == [-1.0]


def test_load_coerces_every_numeric_column(emissions_csv):
    df = load_emissions_csv(str(emissions_csv))

    assert len(df) == 5
    for col in ["year", "population", "gdp", "co2", "methane", "nitrous_oxide"]:
        assert df[col].dtype == float
        assert not df[col].isna().any()
    kenya = df[df["country"] == "Kenya"].iloc[0]
    assert kenya["co2"] == 0.0
    assert kenya["methane"] == 24.0


def test_short_rows_are_zero_filled(emissions_csv):
    df = load_emissions_csv(str(emissions_csv))
    row = df[(df["country"] == "Chile") & (df["year"] == 2019)].iloc[0]
    assert row["co2"] == pytest.approx(84.1)
    assert row["methane"] == 0.0
    assert row["nitrous_oxide"] == 0.0


def test_missing_numeric_column_is_added(tmp_path):
    path = tmp_path / "partial.csv"
    path.write_text("country,year,co2\nPeru,2020,50\n", encoding="utf-8")

    df = load_emissions_csv(str(path))

    assert list(df["methane"]) == [0.0]
    assert list(df["co2"]) == [50.0]


def test_empty_file(tmp_path):
    path = tmp_path / "empty.csv"
    path.write_text("", encoding="utf-8")
    df = load_emissions_csv(str(path))
    assert df.empty
    assert "co2" in df.columns


def test_country_names_skip_blanks(emissions_csv):
    df = load_emissions_csv(str(emissions_csv))
    assert country_names(df) == ["Chile", "Kenya"]


def test_country_series_sorted_by_year(emissions_csv):
    df = load_emissions_csv(str(emissions_csv))
    assert list(country_series(df, "Chile")["year"]) == [2018.0, 2019.0, 2020.0]


def test_latest_record(emissions_csv):
    df = load_emissions_csv(str(emissions_csv))
    assert latest_record(df, "Chile")["co2"] == pytest.approx(85.2)
    assert latest_record(df, "Narnia") is None


def test_bundled_dataset_loads():
    df = load_emissions_csv()
    assert "United States" in country_names(df)
