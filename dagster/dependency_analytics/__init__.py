"""
Dependency Analytics Pipeline

A data pipeline for Washington State county dependency ratios.
Processes population-by-age data covering 2011-2021 into child, aged and
total dependency ratios, with trend fits and county rankings.
"""

__version__ = "1.0.0"
__author__ = "Dependency Analytics Team"
