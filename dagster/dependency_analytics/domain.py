"""
Fixed categorical domains for the dependency analytics pipeline.

The source dataset covers the 39 Washington counties plus the statewide
aggregate for the years 2011-2021. These domains are explicit constants so
that every stage agrees on category membership and ordering.
"""

from typing import Dict, List

import pandas as pd


YEARS: List[int] = list(range(2011, 2022))

STATEWIDE = "Washington State"

COUNTIES: List[str] = [
    "Adams", "Asotin", "Benton", "Chelan", "Clallam", "Clark", "Columbia",
    "Cowlitz", "Douglas", "Ferry", "Franklin", "Garfield", "Grant",
    "Grays Harbor", "Island", "Jefferson", "King", "Kitsap", "Kittitas",
    "Klickitat", "Lewis", "Lincoln", "Mason", "Okanogan", "Pacific",
    "Pend Oreille", "Pierce", "San Juan", "Skagit", "Skamania", "Snohomish",
    "Spokane", "Stevens", "Thurston", "Wahkiakum", "Walla Walla", "Whatcom",
    "Whitman", "Yakima",
]

# Statewide aggregate pinned first, counties in alphabetical order
GEOGRAPHIES: List[str] = [STATEWIDE] + sorted(COUNTIES)

YEAR_DTYPE = pd.CategoricalDtype(categories=YEARS, ordered=True)
GEOGRAPHY_DTYPE = pd.CategoricalDtype(categories=GEOGRAPHIES)

AGE_FILTER = "Age"

# Canonical bracket label -> record field
AGE_BRACKETS: Dict[str, str] = {
    "<=1": "age_1",
    "1-14": "age_1_14",
    "15-24": "age_15_24",
    "25-44": "age_25_44",
    "45-64": "age_45_64",
    "65+": "age_65",
}

# Spellings seen in exports, already dash/space-normalized
AGE_BRACKET_ALIASES: Dict[str, str] = {
    "<1": "<=1",
    "≤1": "<=1",
    "under1": "<=1",
    "1-14": "1-14",
    "15-24": "15-24",
    "25-44": "25-44",
    "45-64": "45-64",
    "65+": "65+",
    "65andover": "65+",
    "65plus": "65+",
}

BRACKET_FIELDS: List[str] = list(AGE_BRACKETS.values())
WORKING_AGE_FIELDS: List[str] = ["age_15_24", "age_25_44", "age_45_64"]
CHILD_FIELDS: List[str] = ["age_1", "age_1_14"]
AGED_FIELDS: List[str] = ["age_65"]

RATIO_COLUMNS: List[str] = ["total_dep_ratio", "child_dep_ratio", "aged_dep_ratio"]
RECORD_KEY: List[str] = ["year", "geography"]
RECORD_COLUMNS: List[str] = RECORD_KEY + BRACKET_FIELDS + ["working_age"] + RATIO_COLUMNS


def year_index(year: int) -> int:
    """Position of a year in the fitted domain, 1-based (2011 -> 1)."""
    return YEARS.index(int(year)) + 1
