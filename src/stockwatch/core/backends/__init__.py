"""Backend implementations for fetching report pages."""

from .base import (
    Backend,
    BackendError,
    FetchError,
    FetchResult,
    PushError,
    RequestSpec,
)
from .http_backend import HttpBackend

__all__ = [
    # Base classes
    "Backend",
    "RequestSpec",
    "FetchResult",
    # Errors
    "BackendError",
    "FetchError",
    "PushError",
    # HTTP backend
    "HttpBackend",
]
