"""
In-memory composition of the pipeline stages.

load -> clean -> reshape -> analyze, with optional snapshots between the
prepared and processed stages. Dagster assets wrap the same functions.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Union

import pandas as pd

from ..errors import DataQualityError
from .data_processing import clean_observations, load_observations
from .reshaping import reshape_observations
from .snapshots import load_snapshot, save_snapshot
from .trends import TrendFit, find_level_shifts, fit_statewide_trend, summarize_ratios

logger = logging.getLogger(__name__)

RESUME_STAGES = (None, 'prepared', 'processed')


@dataclass
class PipelineResult:
    prepared: Optional[pd.DataFrame]
    records: pd.DataFrame
    statewide_trend: TrendFit
    summary: pd.DataFrame
    rejected_groups: List[DataQualityError] = field(default_factory=list)
    level_shifts: List[DataQualityError] = field(default_factory=list)


def run_pipeline(raw_path: Union[str, Path, None] = None,
                 snapshot_dir: Union[str, Path, None] = None,
                 resume_from: Optional[str] = None,
                 min_trend_years: int = 3) -> PipelineResult:
    """
    Run the pipeline end to end.

    Args:
        raw_path: Raw CSV; required unless resuming from a snapshot
        snapshot_dir: Where stage snapshots are written and read; None disables them
        resume_from: 'prepared' or 'processed' to start from that snapshot
        min_trend_years: Reporting threshold for the statewide trend fit

    Returns:
        PipelineResult with records, statewide trend and yearly summary
    """
    if resume_from not in RESUME_STAGES:
        raise ValueError(f"Unknown resume stage '{resume_from}'. Available: {list(RESUME_STAGES[1:])}")
    if resume_from and snapshot_dir is None:
        raise ValueError("resume_from requires a snapshot_dir")
    if not resume_from and raw_path is None:
        raise ValueError("raw_path is required when not resuming from a snapshot")

    prepared = None
    rejected: List[DataQualityError] = []

    if resume_from == 'processed':
        records = load_snapshot('processed', snapshot_dir)
    else:
        if resume_from == 'prepared':
            prepared = load_snapshot('prepared', snapshot_dir)
        else:
            prepared = clean_observations(load_observations(raw_path))
            if snapshot_dir is not None:
                save_snapshot(prepared, 'prepared', snapshot_dir)

        report = reshape_observations(prepared)
        records = report.records
        rejected = report.errors
        if snapshot_dir is not None:
            save_snapshot(records, 'processed', snapshot_dir)

    result = PipelineResult(
        prepared=prepared,
        records=records,
        statewide_trend=fit_statewide_trend(records, min_years=min_trend_years),
        summary=summarize_ratios(records),
        rejected_groups=rejected,
        level_shifts=find_level_shifts(records),
    )
    logger.info(
        f"Pipeline finished: {len(records):,} records, {len(rejected)} rejected groups, "
        f"{len(result.level_shifts)} level shifts"
    )
    return result
