"""
Experiment tracking helpers for training runs (optional MLflow backend).

MLflow is only imported when requested so it stays an optional extra.
Tracking failures never interrupt training.
"""
from __future__ import annotations

import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Dict, Iterator, Optional


@contextmanager
def maybe_mlflow_run(enabled: bool, run_name: str, log_dir: Optional[Path] = None) -> Iterator[None]:
    if not enabled:
        yield None
        return
    try:
        import mlflow  # type: ignore

        if log_dir is not None:
            mlflow.set_tracking_uri((Path(log_dir).resolve() / "mlruns").as_uri())
        run = mlflow.start_run(run_name=run_name)
    except Exception as e:
        logging.warning("MLflow tracking unavailable: %s", e)
        yield None
        return
    with run:
        yield None


def log_params(params: Dict[str, object]) -> None:
    try:
        import mlflow  # type: ignore

        if mlflow.active_run() is not None:
            mlflow.log_params(params)
    except Exception as e:
        logging.debug("Skipping param logging: %s", e)


def log_metrics(metrics: Dict[str, float], step: Optional[int] = None) -> None:
    try:
        import mlflow  # type: ignore

        if mlflow.active_run() is not None:
            mlflow.log_metrics(metrics, step=step)
    except Exception as e:
        logging.debug("Skipping metric logging: %s", e)
