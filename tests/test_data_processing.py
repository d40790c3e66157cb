"""Tests for dependency_analytics.utils.data_processing."""

import pandas as pd
import pytest

from dependency_analytics.domain import GEOGRAPHIES, STATEWIDE, YEARS
from dependency_analytics.errors import MalformedInputError, ValidationError
from dependency_analytics.utils.data_processing import (
    REQUIRED_COLUMNS,
    _clean_column_name,
    clean_observations,
    coerce_geography,
    coerce_year,
    filter_age_observations,
    load_observations,
    standardize_columns,
    validate_counts,
    validate_percentages,
)


# --- load_observations ---


def test_load_observations_normalizes_header(raw_csv):
    df = load_observations(raw_csv)
    assert list(df.columns) == REQUIRED_COLUMNS
    assert len(df) == 40 * 11 * 7


def test_load_observations_missing_file_raises(tmp_path):
    with pytest.raises(FileNotFoundError, match="Data not found"):
        load_observations(tmp_path / "absent.csv")


def test_load_observations_missing_column_raises(tmp_path, raw_frame):
    path = tmp_path / "partial.csv"
    raw_frame.drop(columns=["Selection Value"]).to_csv(path, index=False)
    with pytest.raises(MalformedInputError, match="selection_value"):
        load_observations(path)


def test_load_observations_empty_file_raises(tmp_path):
    path = tmp_path / "empty.csv"
    path.write_text("")
    with pytest.raises(MalformedInputError, match="Could not parse"):
        load_observations(path)


# --- standardize_columns ---


def test_clean_column_name_messy_spacing():
    assert _clean_column_name("max  sub-population ") == "max_sub_population"
    assert _clean_column_name("selection filter") == "selection_filter"


def test_standardize_columns_maps_aliases():
    df = pd.DataFrame(columns=["YEAR", "Geography ", "Max Percent Of Total Population", "max subpopulation"])
    out = standardize_columns(df)
    assert list(out.columns) == ["year", "geography", "max_percent_total_population", "max_sub_population"]


# --- coerce_year ---


def test_coerce_year_ordered_categorical():
    series = pd.Series([str(y) for y in YEARS] * 2)
    out = coerce_year(series)
    assert out.dtype.ordered
    assert list(out.cat.categories) == YEARS


def test_coerce_year_out_of_range_raises():
    series = pd.Series(YEARS + [2010])
    with pytest.raises(ValidationError, match="outside"):
        coerce_year(series)


def test_coerce_year_missing_year_raises():
    series = pd.Series(YEARS[:-1])
    with pytest.raises(ValidationError, match="distinct years"):
        coerce_year(series)


def test_coerce_year_non_integer_raises():
    series = pd.Series(YEARS + [2015.5])
    with pytest.raises(ValidationError, match="non-integer"):
        coerce_year(series)


# --- coerce_geography ---


def test_coerce_geography_statewide_first():
    out = coerce_geography(pd.Series(list(reversed(GEOGRAPHIES))))
    categories = list(out.cat.categories)
    assert categories[0] == STATEWIDE
    assert categories[1:] == sorted(categories[1:])
    assert len(categories) == 40


def test_coerce_geography_strips_county_suffix():
    labels = [g if g == STATEWIDE else f"{g} County" for g in GEOGRAPHIES]
    out = coerce_geography(pd.Series(labels))
    assert set(out.astype(str)) == set(GEOGRAPHIES)


def test_coerce_geography_unknown_label_raises():
    with pytest.raises(ValidationError, match="Unknown geography"):
        coerce_geography(pd.Series(GEOGRAPHIES + ["Multnomah"]))


def test_coerce_geography_wrong_cardinality_raises():
    with pytest.raises(ValidationError, match="distinct geographies"):
        coerce_geography(pd.Series(GEOGRAPHIES[:-1]))


# --- validation helpers ---


def test_validate_percentages_out_of_range_raises():
    with pytest.raises(ValidationError, match=r"\[0, 100\]"):
        validate_percentages(pd.Series([5.0, 101.0]))


def test_validate_percentages_allows_missing():
    out = validate_percentages(pd.Series([5.0, None, "12.5"]))
    assert out.isna().sum() == 1
    assert out.iloc[2] == 12.5


def test_validate_counts_thousands_separator():
    out = validate_counts(pd.Series(["1,700,000", 20]))
    assert out.tolist() == [1_700_000, 20]


def test_validate_counts_negative_raises():
    with pytest.raises(ValidationError, match="negative"):
        validate_counts(pd.Series([10, -1]))


def test_validate_counts_non_numeric_raises():
    with pytest.raises(ValidationError, match="non-numeric"):
        validate_counts(pd.Series([10, "n/a"]))


def test_filter_age_observations_drops_other_filters():
    df = pd.DataFrame({"selection_filter": ["Age", "Income", " Age ", "Race"]})
    out = filter_age_observations(df)
    assert len(out) == 2


# --- clean_observations ---


def test_clean_observations_shape(prepared):
    assert len(prepared) == 40 * 11 * 6
    assert "max_total_population" not in prepared.columns
    assert set(prepared["selection_filter"]) == {"Age"}
    assert prepared["year"].nunique() == 11
    assert prepared["geography"].nunique() == 40


def test_clean_observations_is_deterministic(observations):
    first = clean_observations(observations)
    second = clean_observations(observations)
    pd.testing.assert_frame_equal(first, second)


def test_clean_observations_cardinality_before_age_filter(raw_frame_factory):
    # Adams has no age rows in 2015 but still appears in the geography domain
    raw = raw_frame_factory(non_age_only={(2015, "Adams")})
    prepared = clean_observations(standardize_columns(raw))
    adams_2015 = prepared[(prepared["year"] == 2015) & (prepared["geography"] == "Adams")]
    assert adams_2015.empty


def test_clean_observations_missing_geography_raises(raw_frame):
    raw = raw_frame[raw_frame["Geography"] != "Yakima"]
    with pytest.raises(ValidationError, match="Yakima"):
        clean_observations(standardize_columns(raw))


def test_clean_observations_bad_percentage_raises(raw_frame):
    raw = raw_frame.copy()
    raw.loc[0, "Max Percent of Total Population"] = 150.0
    with pytest.raises(ValidationError):
        clean_observations(standardize_columns(raw))


def test_clean_observations_missing_column_raises(observations):
    with pytest.raises(MalformedInputError):
        clean_observations(observations.drop(columns=["max_total_population"]))
