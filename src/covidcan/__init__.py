"""
covidcan — Canadian COVID-19 provincial case, death and variant analysis.

Architecture:
  sources/     — Health Infobase CSV loaders (cases/deaths, variants/vaccines)
  transforms/  — provincial summaries, variant/vaccine reshaping, cleaning helpers
  charts/      — matplotlib rendering of bar, line and box charts
  modeling/    — random-forest regression of cumulative cases over elapsed days
  pipelines/   — orchestrators that wire sources -> transforms -> charts
  utils/       — structlog configuration

Quick start:
    import asyncio
    from covidcan.pipelines.provincial_summary import run
    result = asyncio.run(run(metric="max_cases", top=5))

CLI:
    covidcan run provincial-summary --metric max_cases --top 5
    covidcan run province-trend --province "Newfoundland and Labrador"
    covidcan run all
"""

__version__ = "0.1.0"
