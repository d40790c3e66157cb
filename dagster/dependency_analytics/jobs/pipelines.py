"""
Pipeline job definitions for dependency analytics.

Defines the asset jobs that coordinate execution:
1. ETL job producing the record table and its snapshots
2. Full pipeline adding the analysis assets
"""

from dagster import AssetSelection, define_asset_job


# ETL pipeline for population data processing.
#
# 1. Raw CSV located or downloaded
# 2. Cleaning and validation ('prepared' snapshot)
# 3. Reshaping into dependency-ratio records ('processed' snapshot)
#
# Use case: refresh the record table after a new export
dependency_etl_pipeline = define_asset_job(
    name="dependency_etl_pipeline",
    selection=AssetSelection.groups("dependency_etl"),
    description="Raw population CSV -> cleaned observations -> dependency-ratio records",
)

# Complete end-to-end pipeline.
#
# Raw CSV ─→ Prepared ─→ Records ─┬─→ Statewide trend
#                                 ├─→ Top counties ─→ County trends
#                                 └─→ Yearly summary
full_dependency_pipeline = define_asset_job(
    name="full_dependency_pipeline",
    selection=AssetSelection.groups("dependency_etl", "dependency_analysis"),
    description="ETL plus trends, rankings and summary statistics",
)
