"""
constants.py — dataset column names, region names and typed literals.

Raw column names are the ones published by Health Infobase after
snake-casing; canonical names are what the transforms and charts use.
"""

from __future__ import annotations

from typing import Final, Literal

# ---------------------------------------------------------------------------
# Regions
# ---------------------------------------------------------------------------
PROVINCES: Final[tuple[str, ...]] = (
    "Newfoundland and Labrador",
    "Prince Edward Island",
    "Nova Scotia",
    "New Brunswick",
    "Quebec",
    "Ontario",
    "Manitoba",
    "Saskatchewan",
    "Alberta",
    "British Columbia",
    "Yukon",
    "Northwest Territories",
    "Nunavut",
)

CANADA: Final[str] = "Canada"
REPATRIATED_TRAVELLERS: Final[str] = "Repatriated travellers"

# Rows in the cases/deaths dataset that are not provinces or territories
EXCLUDED_REGIONS: Final[frozenset[str]] = frozenset({CANADA, REPATRIATED_TRAVELLERS})

# ---------------------------------------------------------------------------
# Cases/deaths dataset: raw column -> canonical column
# ---------------------------------------------------------------------------
CASES_COLUMNS: Final[dict[str, str]] = {
    "prname": "province_name",
    "date": "date",
    "totalcases": "total_cases",
    "numdeaths": "total_deaths",
}

# ---------------------------------------------------------------------------
# Variant/vaccine dataset: raw column -> canonical column
# ---------------------------------------------------------------------------
VARIANT_COLUMNS: Final[dict[str, str]] = {
    "variant_grouping": "variant",
    "collection_week": "collection_week",
    "proportion": "proportion",
    "vaccine_group": "vaccine_group",
    "numdoses": "num_doses",
}

# Tokens read as missing values (readr defaults plus "N/A")
NA_VALUES: Final[list[str]] = ["", "NA", "N/A"]

DATE_FORMAT: Final[str] = "%Y-%m-%d"

# ---------------------------------------------------------------------------
# Typed literals
# ---------------------------------------------------------------------------
Metric = Literal["first_case", "max_cases", "max_deaths", "death_percentage"]
ChartKind = Literal["bar", "line", "box"]
FigureFormat = Literal["pdf", "png", "svg"]
PipelineName = Literal["provincial-summary", "province-trend", "variants", "case-forecast"]

METRICS: Final[tuple[str, ...]] = ("first_case", "max_cases", "max_deaths", "death_percentage")

METRIC_LABELS: Final[dict[str, str]] = {
    "first_case": "Cases at first report",
    "max_cases": "Total cases",
    "max_deaths": "Total deaths",
    "death_percentage": "Deaths as a share of cases",
}
