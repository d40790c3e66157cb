"""
Pivot age-bracket observations into one dependency-ratio record per (year, geography).
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

import pandas as pd

from ..domain import (
    AGE_BRACKET_ALIASES,
    AGE_BRACKETS,
    AGED_FIELDS,
    BRACKET_FIELDS,
    CHILD_FIELDS,
    RATIO_COLUMNS,
    RECORD_COLUMNS,
    RECORD_KEY,
    WORKING_AGE_FIELDS,
)
from ..errors import (
    DataQualityError,
    DivisionByZeroError,
    IncompleteGroupError,
    MalformedInputError,
    ValidationError,
)

logger = logging.getLogger(__name__)

OBSERVATION_COLUMNS = ['year', 'geography', 'selection_value', 'max_sub_population']


@dataclass
class ReshapeReport:
    """Records for every valid group plus the errors of the rejected ones."""
    records: pd.DataFrame
    errors: List[DataQualityError] = field(default_factory=list)

    @property
    def rejected_keys(self) -> List[Tuple]:
        return [error.key for error in self.errors]


def normalize_bracket_label(label) -> Optional[str]:
    """
    Map a raw selection value onto its canonical bracket label.

    Returns None for labels that are not one of the six age brackets.
    """
    text = str(label).strip().lower()
    text = text.replace('–', '-').replace('—', '-')
    text = re.sub(r'\s+', '', text)
    text = re.sub(r'(years|yrs)$', '', text)
    if text in AGE_BRACKETS:
        return text
    return AGE_BRACKET_ALIASES.get(text)


def is_record_table(df: pd.DataFrame) -> bool:
    """True when df already holds reshaped records rather than observations."""
    has_record_columns = all(col in df.columns for col in BRACKET_FIELDS + RATIO_COLUMNS)
    return has_record_columns and 'selection_value' not in df.columns


def compute_dependency_ratios(counts: Dict[str, float], year=None, geography=None) -> Dict[str, float]:
    """
    Derive working-age population and the three dependency ratios.

    Args:
        counts: Population per bracket field (age_1, age_1_14, ... age_65)
        year: Year of the group, used in error reports
        geography: Geography of the group, used in error reports

    Returns:
        Dictionary with working_age and the ratios rounded to 2 decimals

    Raises:
        DivisionByZeroError: If the working-age population is zero
    """
    working_age = sum(counts[f] for f in WORKING_AGE_FIELDS)
    if working_age == 0:
        raise DivisionByZeroError(
            "working-age population (15-64) is zero", year=year, geography=geography, field='working_age'
        )

    children = sum(counts[f] for f in CHILD_FIELDS)
    aged = sum(counts[f] for f in AGED_FIELDS)
    return {
        'working_age': working_age,
        'total_dep_ratio': round(100 * (aged + children) / working_age, 2),
        'child_dep_ratio': round(100 * children / working_age, 2),
        'aged_dep_ratio': round(100 * aged / working_age, 2),
    }


def reshape_observations(observations: pd.DataFrame) -> ReshapeReport:
    """
    Group age observations by (year, geography) and compute one record per group.

    Groups missing a bracket, carrying a bracket twice, or with a zero
    working-age population are rejected with a DataQualityError naming the
    group and field; the remaining groups are still reshaped. Passing an
    already-reshaped record table returns it unchanged.

    Args:
        observations: Cleaned age observations

    Returns:
        ReshapeReport with the record table and collected errors

    Raises:
        MalformedInputError: If the observation columns are absent
        ValidationError: If a produced record is missing a derived value
    """
    if is_record_table(observations):
        return ReshapeReport(records=observations)

    missing_columns = [col for col in OBSERVATION_COLUMNS if col not in observations.columns]
    if missing_columns:
        raise MalformedInputError(f"Cannot reshape, missing columns: {missing_columns}")

    df = observations[OBSERVATION_COLUMNS].copy()
    df['bracket'] = df['selection_value'].map(normalize_bracket_label)

    unknown = df.loc[df['bracket'].isna(), 'selection_value'].unique().tolist()
    if unknown:
        logger.warning(f"Ignoring unrecognized age brackets: {unknown}")
    df = df[df['bracket'].notna()]

    rows = []
    errors: List[DataQualityError] = []
    for (year, geography), group in df.groupby(RECORD_KEY, observed=True, sort=True):
        try:
            counts = _collect_bracket_counts(group, year, geography)
            ratios = compute_dependency_ratios(counts, year=year, geography=geography)
        except DataQualityError as e:
            logger.warning(str(e))
            errors.append(e)
            continue
        rows.append({'year': year, 'geography': geography, **counts, **ratios})

    records = pd.DataFrame(rows, columns=RECORD_COLUMNS)
    for key in RECORD_KEY:
        records[key] = records[key].astype(observations[key].dtype)
    for col in BRACKET_FIELDS + ['working_age']:
        records[col] = _as_counts(records[col])
    for col in RATIO_COLUMNS:
        records[col] = records[col].astype(float)

    if records[RATIO_COLUMNS].isna().any().any():
        raise ValidationError("Reshaped records contain missing dependency ratios")

    logger.info(f"Reshaped {len(records):,} records, rejected {len(errors)} groups")
    return ReshapeReport(records=records.reset_index(drop=True), errors=errors)


def build_records(observations: pd.DataFrame) -> pd.DataFrame:
    """Strict reshape: raise the first data-quality error instead of collecting it."""
    report = reshape_observations(observations)
    if report.errors:
        raise report.errors[0]
    return report.records


def _collect_bracket_counts(group: pd.DataFrame, year, geography) -> Dict[str, float]:
    counts = {}
    missing = []
    duplicated = []
    for label, field_name in AGE_BRACKETS.items():
        values = group.loc[group['bracket'] == label, 'max_sub_population'].dropna()
        if len(values) == 0:
            missing.append(field_name)
        elif len(values) > 1:
            duplicated.append(field_name)
        else:
            counts[field_name] = float(values.iloc[0])

    if missing or duplicated:
        problems = []
        if missing:
            problems.append(f"missing brackets {missing}")
        if duplicated:
            problems.append(f"duplicated brackets {duplicated}")
        raise IncompleteGroupError(
            "; ".join(problems), year=year, geography=geography, field=", ".join(missing + duplicated)
        )
    return counts


def _as_counts(series: pd.Series) -> pd.Series:
    """Integer dtype when every count is whole, float otherwise."""
    series = series.astype(float)
    if len(series) and (series % 1 == 0).all():
        return series.astype('int64')
    return series
