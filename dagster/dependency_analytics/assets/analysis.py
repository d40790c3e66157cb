"""
Analysis assets over dependency-ratio records.

Produces the tables handed to reporting: the statewide trend with
extrapolated predictions, the top counties for a year, per-county trends
for those counties, and yearly descriptive statistics.
"""

from typing import List, Optional

import pandas as pd
from dagster import asset, Config, Output, AssetExecutionContext

from ..resources.settings import get_min_trend_years
from ..utils.trends import (
    DEFAULT_LEVEL_SHIFT_THRESHOLD,
    DEFAULT_METRIC,
    find_level_shifts,
    fit_geography_trends,
    fit_statewide_trend,
    rank_geographies,
    summarize_ratios,
)


class TrendConfig(Config):
    metric: str = DEFAULT_METRIC
    # Falls back to DEPENDENCY_MIN_TREND_YEARS when unset
    min_years: Optional[int] = None
    forecast_year_indices: List[int] = [12, 13, 14]


class RankingConfig(Config):
    year: int = 2021
    top_k: int = 3
    metric: str = DEFAULT_METRIC


class SummaryConfig(Config):
    metric: str = DEFAULT_METRIC
    level_shift_threshold: float = DEFAULT_LEVEL_SHIFT_THRESHOLD


@asset(
    description="OLS trend of the statewide dependency ratio with extrapolated predictions",
    group_name="dependency_analysis"
)
def statewide_dependency_trend(context: AssetExecutionContext, config: TrendConfig,
                               dependency_ratio_records: pd.DataFrame) -> Output[dict]:
    """
    Fit the statewide ratio against year index (2011 -> 1).

    Predictions for indices past 11 are extrapolations; reporting should
    present them as lower-confidence than the fitted years.
    """
    min_years = get_min_trend_years() if config.min_years is None else config.min_years
    fit = fit_statewide_trend(dependency_ratio_records, metric=config.metric, min_years=min_years)

    predictions = {str(index): round(fit.predict(index), 2) for index in config.forecast_year_indices}
    context.log.info(
        f"Statewide {config.metric}: slope={fit.slope:.3f} (se={fit.slope_stderr:.3f}), "
        f"intercept={fit.intercept:.2f}, p={fit.p_value:.4f}"
    )

    trend = {**fit.to_dict(), "predictions": predictions}
    return Output(
        trend,
        metadata={
            "slope": round(fit.slope, 4),
            "intercept": round(fit.intercept, 4),
            "r_squared": round(fit.r_squared, 4),
            "n_years": fit.n_years,
            "predictions": predictions,
        }
    )


@asset(
    description="Counties with the highest dependency ratio for a year",
    group_name="dependency_analysis"
)
def top_dependency_counties(context: AssetExecutionContext, config: RankingConfig,
                            dependency_ratio_records: pd.DataFrame) -> Output[pd.DataFrame]:
    ranking = rank_geographies(
        dependency_ratio_records, year=config.year, top_k=config.top_k, metric=config.metric
    )
    context.log.info(f"Top {config.top_k} counties for {config.year}: {ranking['geography'].astype(str).tolist()}")

    return Output(
        ranking,
        metadata={
            "year": config.year,
            "top_k": config.top_k,
            "counties": ranking['geography'].astype(str).tolist(),
        }
    )


@asset(
    description="Independent OLS trends for the top-ranked counties",
    group_name="dependency_analysis"
)
def county_dependency_trends(context: AssetExecutionContext, config: TrendConfig,
                             dependency_ratio_records: pd.DataFrame,
                             top_dependency_counties: pd.DataFrame) -> Output[pd.DataFrame]:
    """
    Fit each top-ranked county on its own.

    Counties below the year threshold are logged and left out of the
    table rather than failing the whole asset.
    """
    min_years = get_min_trend_years() if config.min_years is None else config.min_years
    counties = top_dependency_counties['geography'].astype(str).tolist()

    report = fit_geography_trends(
        dependency_ratio_records, counties, metric=config.metric, min_years=min_years
    )
    for error in report.errors:
        context.log.warning(f"Skipped trend: {error}")

    trends = report.to_frame()
    context.log.info(f"Fitted trends for {len(trends)} of {len(counties)} counties")

    return Output(
        trends,
        metadata={
            "counties_fitted": len(trends),
            "counties_skipped": [error.geography for error in report.errors],
        }
    )


@asset(
    description="Yearly descriptive statistics of dependency ratios and level-shift checks",
    group_name="dependency_analysis"
)
def dependency_ratio_summary(context: AssetExecutionContext, config: SummaryConfig,
                             dependency_ratio_records: pd.DataFrame) -> Output[pd.DataFrame]:
    """
    Summarize ratios per year across counties.

    Year-over-year jumps above the threshold (such as Garfield in 2016) are
    reported as data-quality warnings; no value is corrected.
    """
    summary = summarize_ratios(dependency_ratio_records)

    shifts = find_level_shifts(
        dependency_ratio_records, metric=config.metric, threshold=config.level_shift_threshold
    )
    for shift in shifts:
        context.log.warning(f"Level shift: {shift}")

    return Output(
        summary,
        metadata={
            "years": len(summary),
            "level_shifts": len(shifts),
            "level_shift_keys": [f"{shift.year}/{shift.geography}" for shift in shifts],
        }
    )
