"""Observability package."""
from chainflow.observability.logging import (
    setup_logging,
    with_run_context,
)

__all__ = ["setup_logging", "with_run_context"]
