"""
Population data processing assets for the dependency analytics pipeline.

Handles the ETL part of the pipeline for county population by age:
1. Locating (or downloading) the raw CSV export
2. Loading, validating and narrowing it to age observations
3. Reshaping age brackets into dependency-ratio records
"""

import os
import traceback

import pandas as pd
import requests
from dagster import asset, Output, AssetExecutionContext

from ..resources.settings import get_data_source_config, get_pipeline_paths
from ..utils.data_processing import clean_observations, load_observations
from ..utils.reshaping import reshape_observations
from ..utils.snapshots import save_snapshot


@asset(
    description="Locate or download the raw county population-by-age CSV",
    group_name="dependency_etl"
)
def raw_population_csv(context: AssetExecutionContext) -> Output[str]:
    """
    Make sure the raw population CSV is present on disk.

    An existing file is used as-is. Otherwise the file is downloaded from
    DEPENDENCY_SOURCE_URL (or the URL in the data source registry).

    Returns:
        Output containing the path of the raw CSV
    """
    raw_file = get_pipeline_paths()['raw_file']
    source_config = get_data_source_config('population_by_age')

    if raw_file.exists():
        context.log.info(f"Raw file already exists: {raw_file}")
        return Output(
            str(raw_file),
            metadata={"path": str(raw_file), "downloaded": False, "source": source_config['source_name']}
        )

    url = os.getenv('DEPENDENCY_SOURCE_URL') or source_config['url']
    if not url:
        raise FileNotFoundError(
            f"Raw file not found at {raw_file} and no DEPENDENCY_SOURCE_URL configured"
        )

    try:
        context.log.info(f"Downloading population CSV from: {url}")
        raw_file.parent.mkdir(parents=True, exist_ok=True)

        response = requests.get(url, stream=True, timeout=60)
        response.raise_for_status()

        with open(raw_file, 'wb') as f:
            for chunk in response.iter_content(chunk_size=8192):
                if chunk:
                    f.write(chunk)

        context.log.info(f"Downloaded raw file: {raw_file}")
    except Exception as e:
        context.log.error(f"Failed to download population CSV: {e}")
        context.log.error(f"Traceback: {traceback.format_exc()}")
        raise

    return Output(
        str(raw_file),
        metadata={
            "path": str(raw_file),
            "downloaded": True,
            "download_url": url,
            "file_size_bytes": raw_file.stat().st_size,
        }
    )


@asset(
    description="Load, validate and filter raw observations to age brackets",
    group_name="dependency_etl"
)
def prepared_population(context: AssetExecutionContext, raw_population_csv: str) -> Output[pd.DataFrame]:
    """
    Loader and cleaner stage.

    - Standardizes the messy header into canonical column names
    - Coerces year and geography into their fixed categorical domains
    - Validates percentages and counts, drops max_total_population
    - Keeps only 'Age' observations

    Any failure here is fatal: a corrupt source invalidates every ratio
    downstream, so there is no partial-dataset mode.

    Returns:
        Output containing the cleaned observations, also written as the
        'prepared' snapshot
    """
    try:
        raw = load_observations(raw_population_csv)
        context.log.info(f"Raw observations: {len(raw):,} rows, columns: {list(raw.columns)}")

        prepared = clean_observations(raw)
        context.log.info(f"Age observations after cleaning: {len(prepared):,} rows")
    except Exception as e:
        context.log.error(f"Failed to prepare population data: {e}")
        context.log.error(f"Traceback: {traceback.format_exc()}")
        raise

    snapshot = save_snapshot(prepared, 'prepared', get_pipeline_paths()['snapshot_dir'])

    return Output(
        prepared,
        metadata={
            "raw_rows": len(raw),
            "age_rows": len(prepared),
            "rows_dropped": len(raw) - len(prepared),
            "years": int(prepared['year'].nunique()),
            "geographies": int(prepared['geography'].nunique()),
            "snapshot": str(snapshot),
        }
    )


@asset(
    description="Pivot age brackets into one dependency-ratio record per year and geography",
    group_name="dependency_etl"
)
def dependency_ratio_records(context: AssetExecutionContext,
                             prepared_population: pd.DataFrame) -> Output[pd.DataFrame]:
    """
    Reshaper stage.

    Groups with a missing or duplicated bracket, or a zero working-age
    population, are logged with their (year, geography) key and left out;
    the other groups are still reshaped.

    Returns:
        Output containing the record table, also written as the
        'processed' snapshot
    """
    report = reshape_observations(prepared_population)
    records = report.records

    for error in report.errors:
        context.log.warning(f"Rejected group: {error}")

    context.log.info(f"Built {len(records):,} records, rejected {len(report.errors)} groups")
    snapshot = save_snapshot(records, 'processed', get_pipeline_paths()['snapshot_dir'])

    return Output(
        records,
        metadata={
            "records": len(records),
            "groups_rejected": len(report.errors),
            "rejected_keys": [f"{year}/{geography}" for year, geography in report.rejected_keys],
            "snapshot": str(snapshot),
        }
    )
