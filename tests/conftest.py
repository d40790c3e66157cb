"""Shared fixtures: synthetic population-by-age exports covering all 40 geographies and 11 years."""

import numpy as np
import pandas as pd
import pytest

from dependency_analytics.domain import GEOGRAPHIES, YEARS
from dependency_analytics.utils.data_processing import clean_observations, standardize_columns
from dependency_analytics.utils.reshaping import build_records


RAW_HEADER = [
    "Year",
    "Geography",
    "Selection Filter",
    "Selection Value",
    "Max Percent of Total Population",
    "Max Sub-Population",
    "Max Total Population",
]

RAW_BRACKETS = ["<1", "1-14", "15-24", "25-44", "45-64", "65+"]


def _bracket_value(label, geo_idx, year_offset):
    # Aged population grows faster than working-age, so ratios rise over time
    base = {
        "<1": 100 + geo_idx,
        "1-14": 1500 + 10 * geo_idx + 5 * year_offset,
        "15-24": 1200 + geo_idx,
        "25-44": 2500 + 2 * geo_idx,
        "45-64": 2300 + 3 * geo_idx + 10 * year_offset,
        "65+": 1400 + 4 * geo_idx + 30 * year_offset,
    }
    return base[label]


def make_raw_frame(overrides=None, drop=None, extra_rows=None, non_age_only=None):
    """
    Build a raw export as it arrives from the source.

    Args:
        overrides: {(year, geography, bracket): value} replacing sub-population values
        drop: set of (year, geography, bracket) rows to leave out
        extra_rows: list of raw row dicts appended at the end
        non_age_only: set of (year, geography) whose age rows are replaced by Income/Race rows
    """
    overrides = overrides or {}
    drop = drop or set()
    non_age_only = non_age_only or set()

    rows = []
    for year_offset, year in enumerate(YEARS):
        for geo_idx, geography in enumerate(GEOGRAPHIES):
            if (year, geography) in non_age_only:
                for selection_filter in ("Income", "Race"):
                    rows.append(_raw_row(year, geography, selection_filter, "Other", 500))
                continue
            for label in RAW_BRACKETS:
                if (year, geography, label) in drop:
                    continue
                value = overrides.get((year, geography, label), _bracket_value(label, geo_idx, year_offset))
                rows.append(_raw_row(year, geography, "Age", label, value))
            rows.append(_raw_row(year, geography, "Income", "<$25k", 700))

    for extra in extra_rows or []:
        rows.append(extra)
    return pd.DataFrame(rows, columns=RAW_HEADER)


def _raw_row(year, geography, selection_filter, selection_value, sub_population):
    return {
        "Year": year,
        "Geography": geography,
        "Selection Filter": selection_filter,
        "Selection Value": selection_value,
        "Max Percent of Total Population": 5.0,
        "Max Sub-Population": sub_population,
        "Max Total Population": np.nan,
    }


@pytest.fixture
def raw_frame_factory():
    return make_raw_frame


@pytest.fixture
def raw_frame():
    return make_raw_frame()


@pytest.fixture
def raw_csv(tmp_path, raw_frame):
    path = tmp_path / "population_by_age.csv"
    raw_frame.to_csv(path, index=False)
    return path


@pytest.fixture
def observations(raw_frame):
    return standardize_columns(raw_frame)


@pytest.fixture
def prepared(observations):
    return clean_observations(observations)


@pytest.fixture
def records(prepared):
    return build_records(prepared)
