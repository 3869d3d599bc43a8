"""Client for the remote URL classification service."""

from .client import ClassifierClient
from .errors import (
    ClassifierAPIError,
    ClassifierError,
    ClassifierRejected,
    ClassifierUnavailable,
    MalformedResponse,
)

__all__ = [
    "ClassifierClient",
    "ClassifierError",
    "ClassifierUnavailable",
    "ClassifierAPIError",
    "MalformedResponse",
    "ClassifierRejected",
]
