"""
Intermediate snapshots between pipeline stages.

Snapshots are pickled DataFrames so categorical dtypes (including the year
order) survive a round trip. They are a convenience checkpoint: every stage
can always be recomputed from the raw file.
"""

import logging
from pathlib import Path
from typing import Union

import pandas as pd

logger = logging.getLogger(__name__)

SNAPSHOT_STAGES = ('prepared', 'processed')


def snapshot_path(stage: str, snapshot_dir: Union[str, Path]) -> Path:
    if stage not in SNAPSHOT_STAGES:
        raise ValueError(f"Unknown snapshot stage '{stage}'. Available: {list(SNAPSHOT_STAGES)}")
    return Path(snapshot_dir) / f"{stage}.pkl"


def snapshot_exists(stage: str, snapshot_dir: Union[str, Path]) -> bool:
    return snapshot_path(stage, snapshot_dir).exists()


def save_snapshot(frame: pd.DataFrame, stage: str, snapshot_dir: Union[str, Path]) -> Path:
    """Write a stage output, replacing any earlier snapshot of that stage."""
    path = snapshot_path(stage, snapshot_dir)
    path.parent.mkdir(parents=True, exist_ok=True)
    frame.to_pickle(path)
    logger.info(f"Saved {stage} snapshot ({len(frame):,} rows): {path}")
    return path


def load_snapshot(stage: str, snapshot_dir: Union[str, Path]) -> pd.DataFrame:
    """
    Read a stage output written by save_snapshot.

    Raises:
        FileNotFoundError: If no snapshot exists for the stage
    """
    path = snapshot_path(stage, snapshot_dir)
    if not path.exists():
        raise FileNotFoundError(f"No {stage} snapshot at {path}")
    frame = pd.read_pickle(path)
    logger.info(f"Loaded {stage} snapshot ({len(frame):,} rows): {path}")
    return frame
