# Module for the static country emissions dataset (one row per country and year)

import logging

import pandas as pd

from eonet_monitor.config import EMISSIONS_CSV_PATH, EMISSIONS_NUMERIC_COLUMNS, NUMERIC_FALLBACK

logger = logging.getLogger(__name__)


def coerce_numeric(values: pd.Series, fallback: float = NUMERIC_FALLBACK) -> pd.Series:
    """
    Converts a column to floats. Blank, missing or unparseable cells become
    `fallback` (0.0 by default) instead of NaN.
    """
    return pd.to_numeric(values, errors='coerce').fillna(fallback).astype(float)


def load_emissions_csv(csv_path: str = EMISSIONS_CSV_PATH) -> pd.DataFrame:
    """
    Loads the emissions CSV using its header row for column names.

    Numeric columns that are present are coerced with `coerce_numeric`;
    missing numeric columns are added filled with the fallback.
    The 'country' column is kept as text with blanks as empty strings.
    """
    try:
        df = pd.read_csv(csv_path, encoding='utf-8', dtype=str, keep_default_na=False)
    except UnicodeDecodeError:
        df = pd.read_csv(csv_path, encoding='latin1', dtype=str, keep_default_na=False)
    except pd.errors.EmptyDataError:
        logger.warning(f"Emissions CSV is empty: {csv_path}")
        return pd.DataFrame(columns=['country'] + EMISSIONS_NUMERIC_COLUMNS)

    df.columns = [c.strip() for c in df.columns]
    if 'country' not in df.columns:
        df['country'] = ""
    df['country'] = df['country'].fillna("").str.strip()

    for col in EMISSIONS_NUMERIC_COLUMNS:
        if col in df.columns:
            df[col] = coerce_numeric(df[col])
        else:
            logger.warning(f"Column '{col}' not found in {csv_path}; filling with {NUMERIC_FALLBACK}")
            df[col] = NUMERIC_FALLBACK

    logger.info(f"Loaded {len(df)} emissions rows from {csv_path}")
    return df


def country_names(df: pd.DataFrame) -> list[str]:
    """Distinct non-empty country names in file order."""
    names = df['country'][df['country'] != ""]
    return list(dict.fromkeys(names))


def country_series(df: pd.DataFrame, country: str) -> pd.DataFrame:
    """Rows of one country sorted by year."""
    rows = df[df['country'] == country]
    return rows.sort_values(by='year', kind='stable').reset_index(drop=True)


def latest_record(df: pd.DataFrame, country: str) -> pd.Series | None:
    rows = country_series(df, country)
    if rows.empty:
        return None
    return rows.iloc[-1]
