"""
Trend fitting, ranking and descriptive statistics over dependency-ratio records.

All functions are read-only over the record table produced by the reshaper.
"""

import logging
from dataclasses import asdict, dataclass, field
from typing import Dict, Iterable, List, Union

import numpy as np
import pandas as pd
import statsmodels.api as sm

from ..domain import GEOGRAPHIES, RATIO_COLUMNS, STATEWIDE, YEARS, year_index
from ..errors import InsufficientDataError, LevelShiftError, ValidationError

logger = logging.getLogger(__name__)

DEFAULT_METRIC = 'total_dep_ratio'
DEFAULT_LEVEL_SHIFT_THRESHOLD = 10.0


@dataclass
class TrendFit:
    """
    Ordinary least squares line of a ratio against year index (2011 -> 1).

    Predictions beyond index 11 are extrapolations and should be reported
    with lower confidence than the fitted points.
    """
    geography: str
    metric: str
    slope: float
    intercept: float
    slope_stderr: float
    intercept_stderr: float
    p_value: float
    r_squared: float
    n_years: int

    def predict(self, index: Union[int, float, Iterable]) -> Union[float, np.ndarray]:
        """Point prediction(s) for one or more year indices."""
        if np.isscalar(index):
            return float(self.intercept + self.slope * index)
        return self.intercept + self.slope * np.asarray(list(index), dtype=float)

    def to_dict(self) -> Dict:
        return asdict(self)


@dataclass
class TrendReport:
    fits: Dict[str, TrendFit] = field(default_factory=dict)
    errors: List[InsufficientDataError] = field(default_factory=list)

    def to_frame(self) -> pd.DataFrame:
        columns = list(TrendFit.__dataclass_fields__)
        return pd.DataFrame([fit.to_dict() for fit in self.fits.values()], columns=columns)


def fit_trend(records: pd.DataFrame, geography: str, metric: str = DEFAULT_METRIC,
              min_years: int = 3) -> TrendFit:
    """
    Fit metric ~ year_index for a single geography.

    Args:
        records: Dependency-ratio records
        geography: Geography label to fit
        metric: Ratio column to regress
        min_years: Reporting threshold on distinct years

    Returns:
        TrendFit with coefficients, standard errors and slope p-value

    Raises:
        InsufficientDataError: If fewer than min_years distinct years are present
        ValueError: If min_years is below 2
    """
    _require_min_years(min_years)
    _require_metric(records, metric)
    subset = records[(records['geography'] == geography) & records[metric].notna()]
    years = subset['year'].astype(int)

    n_years = int(years.nunique())
    if n_years < min_years:
        raise InsufficientDataError(geography, observed=n_years, required=min_years)

    x = np.array([year_index(y) for y in years], dtype=float)
    y = subset[metric].to_numpy(dtype=float)
    model = sm.OLS(y, sm.add_constant(x, has_constant='add')).fit()

    return TrendFit(
        geography=str(geography),
        metric=metric,
        slope=float(model.params[1]),
        intercept=float(model.params[0]),
        slope_stderr=float(model.bse[1]),
        intercept_stderr=float(model.bse[0]),
        p_value=float(model.pvalues[1]),
        r_squared=float(model.rsquared),
        n_years=n_years,
    )


def fit_statewide_trend(records: pd.DataFrame, metric: str = DEFAULT_METRIC,
                        min_years: int = 3) -> TrendFit:
    """Trend of the statewide aggregate."""
    return fit_trend(records, STATEWIDE, metric=metric, min_years=min_years)


def fit_geography_trends(records: pd.DataFrame, geographies: Iterable[str],
                         metric: str = DEFAULT_METRIC, min_years: int = 3) -> TrendReport:
    """
    Fit an independent trend for each geography.

    Geographies with too few years are reported in TrendReport.errors and
    do not stop the others from being fitted.

    Raises:
        ValidationError: If a geography label is not in the domain
    """
    _require_min_years(min_years)
    geographies = [str(g) for g in geographies]
    unknown = [g for g in geographies if g not in GEOGRAPHIES]
    if unknown:
        raise ValidationError(f"Unknown geography labels: {unknown}")

    report = TrendReport()
    for geography in geographies:
        try:
            report.fits[geography] = fit_trend(records, geography, metric=metric, min_years=min_years)
        except InsufficientDataError as e:
            logger.warning(str(e))
            report.errors.append(e)
    return report


def rank_geographies(records: pd.DataFrame, year: int, top_k: int = 3,
                     metric: str = DEFAULT_METRIC) -> pd.DataFrame:
    """
    Top-K counties for a year by descending metric.

    The statewide aggregate is excluded. Ties are broken by geography label
    ascending, so the order is deterministic.

    Returns:
        DataFrame with rank, geography, year and metric columns
    """
    _require_metric(records, metric)
    year = _require_year(year)
    if top_k < 1:
        raise ValueError(f"top_k must be positive, got {top_k}")

    subset = records[(records['year'] == year) & (records['geography'] != STATEWIDE)]
    ranked = (
        subset.assign(_label=subset['geography'].astype(str))
        .sort_values([metric, '_label'], ascending=[False, True], kind='mergesort')
        .head(top_k)
        .reset_index(drop=True)
    )
    ranked.insert(0, 'rank', range(1, len(ranked) + 1))
    return ranked[['rank', 'geography', 'year', metric]]


def summarize_ratios(records: pd.DataFrame) -> pd.DataFrame:
    """Per-year descriptive statistics of each ratio across counties."""
    counties = records[records['geography'] != STATEWIDE]
    summary = counties.groupby('year', observed=True)[RATIO_COLUMNS].agg(
        ['count', 'mean', 'median', 'min', 'max', 'std']
    )
    summary.columns = [f"{col}_{stat}" for col, stat in summary.columns]
    return summary.reset_index()


def find_level_shifts(records: pd.DataFrame, metric: str = DEFAULT_METRIC,
                      threshold: float = DEFAULT_LEVEL_SHIFT_THRESHOLD) -> List[LevelShiftError]:
    """
    Flag year-over-year changes in a ratio larger than threshold points.

    Flagged points are returned for investigation; values are never adjusted.
    """
    _require_metric(records, metric)
    findings = []
    ordered = records.sort_values(['geography', 'year'])
    for geography, group in ordered.groupby('geography', observed=True, sort=True):
        years = group['year'].astype(int).tolist()
        values = group[metric].tolist()
        for prev_year, year, prev_value, value in zip(years, years[1:], values, values[1:]):
            delta = value - prev_value
            if abs(delta) > threshold:
                findings.append(LevelShiftError(
                    f"{metric} changed by {delta:+.2f} between {prev_year} and {year}",
                    year=year, geography=str(geography), field=metric,
                ))
    return findings


def _require_min_years(min_years: int) -> None:
    # A line through fewer than two years has no defined slope or error
    if min_years < 2:
        raise ValueError(f"min_years must be at least 2, got {min_years}")


def _require_year(year) -> int:
    try:
        as_float = float(year)
    except (TypeError, ValueError):
        raise ValidationError(f"Year must be an integer, got {year!r}")
    if not as_float.is_integer():
        raise ValidationError(f"Year must be an integer, got {year!r}")
    if int(as_float) not in YEARS:
        raise ValidationError(f"Year {year} outside {YEARS[0]}-{YEARS[-1]}")
    return int(as_float)


def _require_metric(records: pd.DataFrame, metric: str) -> None:
    if metric not in records.columns:
        raise ValidationError(f"Unknown metric '{metric}'. Available: {RATIO_COLUMNS}")
