"""
modeling/forest.py — Random-forest regression of cumulative cases on elapsed days.

The single feature is the number of days since a region's first observation;
the target is its cumulative case count. scikit-learn supplies the ensemble,
the holdout split, K-fold cross-validation and the metrics.

A random forest predicts averages of training targets, so forecasts stay
within the observed range: the forecast curve flattens at the last plateau
rather than extrapolating growth.

Usage:
    from covidcan.modeling.forest import (
        ForestConfig, elapsed_days_frame, fit_and_evaluate, forecast, to_features,
    )

    frame = elapsed_days_frame(df, "Canada")
    X, y = to_features(frame)
    report = fit_and_evaluate(X, y, ForestConfig(n_estimators=200))
    future = forecast(report.model, last_day=int(X[-1, 0]), days=30)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import timedelta

import numpy as np
import polars as pl
import structlog
from sklearn.ensemble import RandomForestRegressor
from sklearn.metrics import mean_absolute_error, mean_squared_error, r2_score
from sklearn.model_selection import KFold, cross_val_score, train_test_split

from covidcan.transforms.provincial import drop_missing

log = structlog.get_logger(__name__)


@dataclass
class ForestConfig:
    """Hyper-parameters and evaluation settings for one modelling run."""

    n_estimators: int = 100
    test_size: float = 0.2
    cv_folds: int = 5
    random_state: int = 42
    forecast_days: int = 30
    tree_counts: tuple[int, ...] = (10, 25, 50, 100, 200)


@dataclass
class ForestReport:
    """Holdout and cross-validation results plus the model refit on all rows."""

    model: RandomForestRegressor
    r2: float
    mae: float
    rmse: float
    n_train: int
    n_test: int
    cv_scores: list[float] = field(default_factory=list)

    @property
    def cv_mean(self) -> float:
        return float(np.mean(self.cv_scores)) if self.cv_scores else float("nan")

    @property
    def cv_std(self) -> float:
        return float(np.std(self.cv_scores)) if self.cv_scores else float("nan")

    def metrics(self) -> dict[str, float]:
        return {
            "r2": self.r2,
            "mae": self.mae,
            "rmse": self.rmse,
            "cv_r2_mean": self.cv_mean,
            "cv_r2_std": self.cv_std,
        }


def _new_forest(n_estimators: int, config: ForestConfig) -> RandomForestRegressor:
    return RandomForestRegressor(
        n_estimators=n_estimators,
        random_state=config.random_state,
        n_jobs=-1,
    )


# ---------------------------------------------------------------------------
# Feature preparation
# ---------------------------------------------------------------------------


def elapsed_days_frame(df: pl.DataFrame, region: str) -> pl.DataFrame:
    """
    One region's cumulative cases with days elapsed since its first row.

    Returns:
        DataFrame[date, elapsed_days, total_cases] sorted by date.
    """
    frame = drop_missing(
        df.filter(pl.col("province_name") == region),
        ["date", "total_cases"],
    ).sort("date", maintain_order=True)

    return frame.select(
        "date",
        (pl.col("date") - pl.col("date").min()).dt.total_days().alias("elapsed_days"),
        pl.col("total_cases").cast(pl.Float64),
    )


def to_features(frame: pl.DataFrame) -> tuple[np.ndarray, np.ndarray]:
    """Feature matrix (n, 1) of elapsed days and the cumulative-case target."""
    X = frame["elapsed_days"].cast(pl.Float64).to_numpy().reshape(-1, 1)
    y = frame["total_cases"].cast(pl.Float64).to_numpy()
    return X, y


# ---------------------------------------------------------------------------
# Fit / evaluate / forecast
# ---------------------------------------------------------------------------


def fit_and_evaluate(
    X: np.ndarray,
    y: np.ndarray,
    config: ForestConfig | None = None,
) -> ForestReport:
    """
    Holdout metrics, K-fold CV R², and a final model fit on every row.

    Raises:
        ValueError: fewer rows than config.cv_folds.
    """
    cfg = config or ForestConfig()
    if len(y) < max(cfg.cv_folds, 2):
        raise ValueError(
            f"Need at least {max(cfg.cv_folds, 2)} observations to model, got {len(y)}"
        )

    X_train, X_test, y_train, y_test = train_test_split(
        X, y, test_size=cfg.test_size, random_state=cfg.random_state
    )
    holdout = _new_forest(cfg.n_estimators, cfg).fit(X_train, y_train)
    y_pred = holdout.predict(X_test)

    cv = KFold(n_splits=cfg.cv_folds, shuffle=True, random_state=cfg.random_state)
    cv_scores = cross_val_score(_new_forest(cfg.n_estimators, cfg), X, y, cv=cv, scoring="r2")

    report = ForestReport(
        model=_new_forest(cfg.n_estimators, cfg).fit(X, y),
        r2=float(r2_score(y_test, y_pred)),
        mae=float(mean_absolute_error(y_test, y_pred)),
        rmse=float(np.sqrt(mean_squared_error(y_test, y_pred))),
        n_train=len(y_train),
        n_test=len(y_test),
        cv_scores=[float(s) for s in cv_scores],
    )
    log.info("forest_evaluated", n_estimators=cfg.n_estimators, **report.metrics())
    return report


def forecast(model: RandomForestRegressor, last_day: int, days: int) -> pl.DataFrame:
    """
    Predicted cumulative cases for the `days` days after `last_day`.

    Returns:
        DataFrame[elapsed_days, predicted_cases].
    """
    future = np.arange(last_day + 1, last_day + days + 1, dtype=float)
    predictions = model.predict(future.reshape(-1, 1)) if days > 0 else np.array([])
    return pl.DataFrame(
        {
            "elapsed_days": future.astype(np.int64),
            "predicted_cases": predictions.astype(float),
        },
        schema={"elapsed_days": pl.Int64, "predicted_cases": pl.Float64},
    )


def fitted_and_forecast_frame(
    frame: pl.DataFrame,
    report: ForestReport,
    days: int,
) -> pl.DataFrame:
    """
    Chart-ready frame: observed and fitted values over the observed dates,
    then the forecast over the following days.

    Returns:
        DataFrame[date, observed, fitted, forecast]; columns not applicable
        to a row are null.
    """
    X, _ = to_features(frame)
    history = frame.select(
        pl.col("date"),
        pl.col("total_cases").alias("observed"),
    ).with_columns(
        pl.Series("fitted", report.model.predict(X), dtype=pl.Float64),
        pl.lit(None, dtype=pl.Float64).alias("forecast"),
    )

    last_date = frame["date"].max()
    last_day = int(frame["elapsed_days"].max())
    future = forecast(report.model, last_day, days)
    projected = pl.DataFrame(
        {
            "date": [last_date + timedelta(days=k) for k in range(1, days + 1)],
            "observed": [None] * days,
            "fitted": [None] * days,
            "forecast": future["predicted_cases"].to_list(),
        },
        schema=history.schema,
    )
    return pl.concat([history, projected])


def learning_curve_over_trees(
    X: np.ndarray,
    y: np.ndarray,
    config: ForestConfig | None = None,
) -> pl.DataFrame:
    """
    Train and holdout R² for each tree count in config.tree_counts.

    Every forest is fit on the same holdout split as fit_and_evaluate().

    Returns:
        DataFrame[n_estimators, train_r2, test_r2].
    """
    cfg = config or ForestConfig()
    X_train, X_test, y_train, y_test = train_test_split(
        X, y, test_size=cfg.test_size, random_state=cfg.random_state
    )

    rows = []
    for n in cfg.tree_counts:
        model = _new_forest(n, cfg).fit(X_train, y_train)
        rows.append(
            {
                "n_estimators": n,
                "train_r2": float(model.score(X_train, y_train)),
                "test_r2": float(model.score(X_test, y_test)),
            }
        )
        log.debug("learning_curve_point", **rows[-1])

    return pl.DataFrame(
        rows,
        schema={"n_estimators": pl.Int64, "train_r2": pl.Float64, "test_r2": pl.Float64},
    )
