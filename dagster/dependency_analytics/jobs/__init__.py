"""
Jobs module for dependency analytics pipeline.

Contains job definitions that orchestrate asset execution:
- ETL job (raw file -> ratio records)
- Full pipeline including analysis assets
"""
