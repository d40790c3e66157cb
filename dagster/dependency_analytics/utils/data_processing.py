"""
Loading and cleaning utilities for the dependency analytics pipeline.

Contains functions for:
- Reading the raw population CSV and standardizing its header
- Coercing year and geography into their fixed categorical domains
- Filtering to age-bracket observations and validating numeric columns
"""

import logging
import re
from pathlib import Path
from typing import Tuple, Union

import numpy as np
import pandas as pd

from ..domain import AGE_FILTER, GEOGRAPHIES, GEOGRAPHY_DTYPE, YEARS, YEAR_DTYPE
from ..errors import MalformedInputError, ValidationError

logger = logging.getLogger(__name__)


REQUIRED_COLUMNS = [
    'year',
    'geography',
    'selection_filter',
    'selection_value',
    'max_percent_total_population',
    'max_sub_population',
    'max_total_population',
]

# Header spellings that differ from the canonical names after cleaning
COLUMN_ALIASES = {
    'max_percent_of_total_population': 'max_percent_total_population',
    'max_percent_of_total_pop': 'max_percent_total_population',
    'max_subpopulation': 'max_sub_population',
    'max_sub_pop': 'max_sub_population',
    'max_total_pop': 'max_total_population',
    'county': 'geography',
}

DROPPED_COLUMNS = ['max_total_population']


def load_observations(path: Union[str, Path]) -> pd.DataFrame:
    """
    Read the raw population CSV into a DataFrame of observations.

    Header names are lower-cased and underscore-separated, then mapped onto
    the canonical column names so that 'Max Sub-Population' and
    'max_sub_population' are treated alike.

    Args:
        path: Location of the comma-separated input file

    Returns:
        DataFrame with standardized column names

    Raises:
        FileNotFoundError: If the file does not exist
        MalformedInputError: If the file cannot be parsed or lacks required columns
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Data not found: {path}")

    try:
        df = pd.read_csv(path)
    except (pd.errors.EmptyDataError, pd.errors.ParserError, UnicodeDecodeError) as e:
        raise MalformedInputError(f"Could not parse {path} as CSV: {e}") from e

    df = standardize_columns(df)
    require_columns(df)
    logger.info(f"Loaded {len(df):,} observations from {path.name}")
    return df


def standardize_columns(df: pd.DataFrame) -> pd.DataFrame:
    """Rename columns to their canonical lower_snake_case names."""
    new_columns = []
    for col in df.columns:
        clean_name = _clean_column_name(str(col).strip().lower())
        new_columns.append(COLUMN_ALIASES.get(clean_name, clean_name))
    df = df.copy()
    df.columns = new_columns
    return df


def require_columns(df: pd.DataFrame) -> None:
    """Raise MalformedInputError when any required column is absent."""
    missing = [col for col in REQUIRED_COLUMNS if col not in df.columns]
    if missing:
        raise MalformedInputError(
            f"Missing required columns: {missing}. Found: {list(df.columns)}"
        )


def clean_observations(df: pd.DataFrame) -> pd.DataFrame:
    """
    Type-correct, validate and narrow raw observations.

    Year and geography cardinality is checked on the full observation set,
    before the age filter; a geography whose only rows for some year use
    other selection filters is therefore valid but yields no age rows.

    Args:
        df: Observations as returned by load_observations

    Returns:
        Age observations with categorical year/geography and numeric counts

    Raises:
        MalformedInputError: If required columns are absent
        ValidationError: If any value falls outside its domain
    """
    require_columns(df)
    df = df.copy()

    df['year'] = coerce_year(df['year'])
    df['geography'] = coerce_geography(df['geography'])
    df['max_percent_total_population'] = validate_percentages(df['max_percent_total_population'])

    # Mostly missing and unused downstream
    df = df.drop(columns=DROPPED_COLUMNS)

    df = filter_age_observations(df)
    df['max_sub_population'] = validate_counts(df['max_sub_population'])
    df['selection_value'] = df['selection_value'].astype(str).str.strip()

    keep = [
        'year', 'geography', 'selection_filter', 'selection_value',
        'max_sub_population', 'max_percent_total_population',
    ]
    return df[keep].reset_index(drop=True)


def coerce_year(series: pd.Series) -> pd.Series:
    """
    Coerce a year column to the ordered 2011-2021 categorical domain.

    Raises:
        ValidationError: On non-integer values, years outside the domain,
            or when the distinct year count is not 11
    """
    parsed, bad_count = _parse_numeric_series(series)
    if bad_count or parsed.isna().any():
        raise ValidationError(f"Year column has {int(parsed.isna().sum())} missing or non-numeric values")
    if not np.all(np.mod(parsed, 1) == 0):
        raise ValidationError("Year column contains non-integer values")

    years = parsed.astype(int)
    outside = sorted(set(years) - set(YEARS))
    if outside:
        raise ValidationError(f"Years outside {YEARS[0]}-{YEARS[-1]}: {outside}")

    distinct = years.nunique()
    if distinct != len(YEARS):
        missing = sorted(set(YEARS) - set(years))
        raise ValidationError(f"Expected {len(YEARS)} distinct years, found {distinct} (missing {missing})")

    return years.astype(YEAR_DTYPE)


def coerce_geography(series: pd.Series) -> pd.Series:
    """
    Coerce a geography column to the fixed 40-label categorical domain.

    A trailing ' County' suffix is stripped before matching. The statewide
    aggregate comes first in the category order.

    Raises:
        ValidationError: On unknown labels or when the distinct label count is not 40
    """
    if series.isna().any():
        raise ValidationError(f"Geography column has {int(series.isna().sum())} missing values")

    labels = series.astype(str).str.strip().str.replace(r"\s+County\s*$", "", case=False, regex=True)
    unknown = sorted(set(labels) - set(GEOGRAPHIES))
    if unknown:
        raise ValidationError(f"Unknown geography labels: {unknown}")

    distinct = labels.nunique()
    if distinct != len(GEOGRAPHIES):
        missing = sorted(set(GEOGRAPHIES) - set(labels))
        raise ValidationError(
            f"Expected {len(GEOGRAPHIES)} distinct geographies, found {distinct} (missing {missing})"
        )

    return labels.astype(GEOGRAPHY_DTYPE)


def filter_age_observations(df: pd.DataFrame) -> pd.DataFrame:
    """Keep rows whose selection filter is 'Age'; other filters are dropped."""
    is_age = df['selection_filter'].astype(str).str.strip() == AGE_FILTER
    dropped = int((~is_age).sum())
    if dropped:
        logger.info(f"Dropped {dropped:,} non-age observations")
    return df[is_age].copy()


def validate_percentages(series: pd.Series) -> pd.Series:
    """
    Parse percentages and check they lie in [0, 100].

    Missing values are allowed; the column is informational only.

    Raises:
        ValidationError: On unparseable values or values outside [0, 100]
    """
    parsed, bad_count = _parse_numeric_series(series)
    if bad_count:
        raise ValidationError(f"max_percent_total_population has {bad_count} non-numeric values")

    out_of_range = parsed[(parsed < 0) | (parsed > 100)]
    if len(out_of_range):
        raise ValidationError(
            f"max_percent_total_population outside [0, 100] in {len(out_of_range)} rows: "
            f"{out_of_range.head(5).tolist()}"
        )
    return parsed


def validate_counts(series: pd.Series) -> pd.Series:
    """
    Parse population counts and check they are non-negative.

    Missing counts are kept as NaN; the reshaper reports them per group.

    Raises:
        ValidationError: On unparseable or negative values
    """
    parsed, bad_count = _parse_numeric_series(series)
    if bad_count:
        raise ValidationError(f"max_sub_population has {bad_count} non-numeric values")

    negative = parsed[parsed < 0]
    if len(negative):
        raise ValidationError(f"max_sub_population is negative in {len(negative)} rows")
    return parsed


def _parse_numeric_series(series: pd.Series) -> Tuple[pd.Series, int]:
    """Parse numbers that may carry thousands separators; count unparseable cells."""
    raw = series.copy()
    cleaned = (
        raw.astype(str)
        .str.strip()
        .str.replace(",", "", regex=False)
        .replace({"": np.nan, "nan": np.nan, "None": np.nan, "<NA>": np.nan})
    )
    parsed = pd.to_numeric(cleaned, errors="coerce")
    bad_mask = raw.notna() & cleaned.notna() & parsed.isna()
    return parsed, int(bad_mask.sum())


def _clean_column_name(name: str) -> str:
    """Clean individual column name by removing special characters."""
    clean_name = name.replace(' ', '_').replace('/', '_').replace('-', '_')
    clean_name = clean_name.replace('(', '').replace(')', '').replace('.', '').replace(',', '')
    # Remove any remaining special characters
    clean_name = ''.join(c for c in clean_name if c.isalnum() or c == '_')
    clean_name = re.sub(r'_+', '_', clean_name).strip('_')
    return clean_name
