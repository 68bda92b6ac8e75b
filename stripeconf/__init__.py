"""Local Stripe project configuration and a thin Stripe API wrapper."""

__version__ = "0.1.0"

from .core.errors import ConfigError, StripeClientError, StripeconfError, ValidationError
from .core.project_store import ConfigDocument, LoadResult, ProjectDraft, ProjectRecord, ProjectStore
from .providers.stripe_client import StripeClient

__all__ = [
    "__version__",
    "ConfigDocument",
    "ConfigError",
    "LoadResult",
    "ProjectDraft",
    "ProjectRecord",
    "ProjectStore",
    "StripeClient",
    "StripeClientError",
    "StripeconfError",
    "ValidationError",
]
