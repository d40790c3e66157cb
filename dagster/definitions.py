"""
Dependency Analytics Pipeline - Main Definitions

Dagster definitions for the complete dependency analytics pipeline.
This module brings together all assets and jobs for execution.

Architecture:
- Asset organization by stage (population ETL, analysis)
- Plain pandas/statsmodels functions in utils, wrapped by assets
- Environment-driven configuration in resources.settings

Data Flow:
Raw CSV → Prepared observations → Ratio records → Trends / Rankings / Summary
"""

from dagster import Definitions

from dependency_analytics.assets.population import (
    raw_population_csv,
    prepared_population,
    dependency_ratio_records
)
from dependency_analytics.assets.analysis import (
    statewide_dependency_trend,
    top_dependency_counties,
    county_dependency_trends,
    dependency_ratio_summary
)
from dependency_analytics.jobs.pipelines import (
    dependency_etl_pipeline,
    full_dependency_pipeline
)


defs = Definitions(
    assets=[
        # Population ETL assets
        raw_population_csv,
        prepared_population,
        dependency_ratio_records,

        # Analysis assets
        statewide_dependency_trend,
        top_dependency_counties,
        county_dependency_trends,
        dependency_ratio_summary
    ],
    jobs=[
        dependency_etl_pipeline,
        full_dependency_pipeline
    ]
)
