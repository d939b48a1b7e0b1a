"""SF-CICD: Salesforce CI/CD helpers with AI-powered Apex review."""

__version__ = "0.1.0"

from sf_cicd.config import AIProvider, Settings, resolve_settings
from sf_cicd.costs import estimate_cost
from sf_cicd.errors import SFCICDError, OrgAuthError, ReviewError
from sf_cicd.ai import (
    CallOutcome,
    Failure,
    FailureKind,
    ProviderAdapter,
    RetryOrchestrator,
    Success,
    create_adapter,
    extract_json,
)

__all__ = [
    "__version__",
    # Configuration
    "AIProvider",
    "Settings",
    "resolve_settings",
    # AI client
    "CallOutcome",
    "Failure",
    "FailureKind",
    "ProviderAdapter",
    "RetryOrchestrator",
    "Success",
    "create_adapter",
    "extract_json",
    "estimate_cost",
    # Errors
    "SFCICDError",
    "OrgAuthError",
    "ReviewError",
]
