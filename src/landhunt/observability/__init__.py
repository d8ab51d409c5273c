"""Observability — prompt registry, structured logging, and MLflow integration helpers."""

from landhunt.observability.logging import get_correlation_id, setup_logging
from landhunt.observability.prompts import get_active_prompt, log_prompt_to_run

__all__ = ["get_active_prompt", "get_correlation_id", "log_prompt_to_run", "setup_logging"]
