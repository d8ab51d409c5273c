"""Lightweight MLflow tracing wrapper.

Pipeline modules import tracing helpers from here instead of calling
mlflow directly:

    from landhunt.observability.tracing import trace, start_span, log_metrics

    @trace(name="score_parcel", span_type="CHAIN")
    async def score_parcel(...): ...

    with start_span("llm_completion", span_type="CHAT_MODEL") as span:
        span.set_inputs({...})

Metric, tag and artifact writes only happen inside an active run and never
break the pipeline.
"""

import logging
from contextlib import contextmanager

import mlflow

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Decorators / context managers
# ---------------------------------------------------------------------------

def trace(name: str | None = None, **kwargs):
    """Decorator: wraps a sync or async function in an MLflow trace span."""
    return mlflow.trace(name=name, **kwargs) if name else mlflow.trace(**kwargs)


@contextmanager
def start_span(name: str = "span", **kwargs):
    """Context manager yielding an MLflow span."""
    with mlflow.start_span(name=name, **kwargs) as span:
        yield span


# ---------------------------------------------------------------------------
# Run logging (no-op outside an active run)
# ---------------------------------------------------------------------------

def log_metrics(metrics: dict, step: int | None = None) -> None:
    if mlflow.active_run() is None:
        return
    try:
        mlflow.log_metrics(metrics, step=step)
    except Exception as e:
        logger.debug("MLflow log_metrics failed: %s", e)


def log_text(text: str, artifact_file: str) -> None:
    if mlflow.active_run() is None:
        return
    try:
        mlflow.log_text(text, artifact_file)
    except Exception as e:
        logger.debug("MLflow log_text failed: %s", e)


def set_tag(key: str, value: str) -> None:
    if mlflow.active_run() is None:
        return
    try:
        mlflow.set_tag(key, value)
    except Exception as e:
        logger.debug("MLflow set_tag failed: %s", e)


# ---------------------------------------------------------------------------
# Process setup
# ---------------------------------------------------------------------------

def set_tracking_uri(uri: str) -> None:
    mlflow.set_tracking_uri(uri)


def set_experiment(name: str) -> None:
    mlflow.set_experiment(name)


def enable_async_logging() -> None:
    mlflow.config.enable_async_logging()
