"""Salesforce org authentication through the ``sf`` CLI."""

from sf_cicd.org.base import SFCommandResult, SFCommandRunner
from sf_cicd.org.auth import (
    AuthMethod,
    OrgAuthenticator,
    OrgCredentials,
    OrgEnvironment,
    OrgInfo,
)

__all__ = [
    "SFCommandResult",
    "SFCommandRunner",
    "AuthMethod",
    "OrgAuthenticator",
    "OrgCredentials",
    "OrgEnvironment",
    "OrgInfo",
]
