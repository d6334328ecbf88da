"""Poll cycle orchestration."""

from .runner import (
    PollRunner,
    PollSummary,
    build_request,
    collect_source,
    create_backend,
    create_transport,
    run_poll_once,
)

__all__ = [
    "PollRunner",
    "PollSummary",
    "build_request",
    "collect_source",
    "create_backend",
    "create_transport",
    "run_poll_once",
]
