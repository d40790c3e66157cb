"""
Configuration for the dependency analytics pipeline.

Provides data source descriptions and filesystem locations, read from
environment variables with container-friendly defaults.
"""

import os
from pathlib import Path
from typing import Dict, Any


# Data source configuration registry
DATA_SOURCES: Dict[str, Dict[str, Any]] = {
    'population_by_age': {
        'source_name': 'WTN',
        'source_full_name': 'Washington Tracking Network, Washington State Department of Health',
        'category': 'demography',
        'url': os.getenv('DEPENDENCY_SOURCE_URL', ''),
        'description': 'County population by age group, yearly estimates',
        'years_available': list(range(2011, 2022)),
        'update_frequency': 'annual'
    },
}

DEFAULT_DATA_ROOT = '/opt/dagster'
DEFAULT_MIN_TREND_YEARS = 3


def get_pipeline_paths() -> Dict[str, Path]:
    """
    Resolve filesystem locations used by the pipeline.

    DAGSTER_DATA_ROOT sets the base directory; DEPENDENCY_RAW_PATH and
    DEPENDENCY_SNAPSHOT_DIR override individual locations.

    Returns:
        Dictionary with 'raw_file' and 'snapshot_dir' paths
    """
    data_root = Path(os.getenv('DAGSTER_DATA_ROOT', DEFAULT_DATA_ROOT))
    raw_file = os.getenv('DEPENDENCY_RAW_PATH') or data_root / 'raw' / 'wtn' / 'population_by_age.csv'
    snapshot_dir = os.getenv('DEPENDENCY_SNAPSHOT_DIR') or data_root / 'clean' / 'wtn' / 'snapshots'
    return {
        'raw_file': Path(raw_file),
        'snapshot_dir': Path(snapshot_dir),
    }


def get_min_trend_years() -> int:
    """
    Minimum number of distinct years a trend fit requires.

    This is a reporting threshold (a two-point line says nothing about a
    trend), not a statistical minimum, so it can be lowered or raised.

    Raises:
        ValueError: If DEPENDENCY_MIN_TREND_YEARS is not an integer >= 2
    """
    raw_value = os.getenv('DEPENDENCY_MIN_TREND_YEARS', str(DEFAULT_MIN_TREND_YEARS))
    try:
        min_years = int(raw_value)
    except ValueError:
        raise ValueError(f"DEPENDENCY_MIN_TREND_YEARS must be an integer, got '{raw_value}'")
    if min_years < 2:
        raise ValueError(f"DEPENDENCY_MIN_TREND_YEARS must be at least 2, got {min_years}")
    return min_years


def get_data_source_config(source_name: str) -> Dict[str, Any]:
    """
    Get configuration for a specific data source.

    Args:
        source_name: Name of the data source (e.g., 'population_by_age')

    Returns:
        Dictionary containing source configuration

    Raises:
        KeyError: If source_name is not found in DATA_SOURCES
    """
    if source_name not in DATA_SOURCES:
        available_sources = list(DATA_SOURCES.keys())
        raise KeyError(f"Unknown data source '{source_name}'. Available: {available_sources}")

    return DATA_SOURCES[source_name]
