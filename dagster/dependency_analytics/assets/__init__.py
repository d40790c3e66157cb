"""
Assets module for dependency analytics pipeline.

Contains all Dagster assets organized by domain:
- population: Raw file, cleaning and reshaping into ratio records
- analysis: Trends, rankings and descriptive statistics
"""
