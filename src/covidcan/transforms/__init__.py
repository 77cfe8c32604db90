"""
covidcan.transforms — table reshaping on polars DataFrames.

  normalize   — stateless cleaning helpers (snake_case, casts, dates)
  provincial  — provincial summaries (first case, max, death percentage)
  variants    — variant proportions and vaccine dose totals
"""
