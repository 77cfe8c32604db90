"""
covidcan.sources — dataset loaders.

  CasesDeathsSource    — cumulative cases and deaths by province (CSV)
  VariantVaccineSource — weekly variant proportions and vaccine doses (CSV)
"""

from covidcan.sources.base import BaseSource, SchemaError
from covidcan.sources.infobase import CasesDeathsSource, VariantVaccineSource

__all__ = [
    "BaseSource",
    "SchemaError",
    "CasesDeathsSource",
    "VariantVaccineSource",
]
