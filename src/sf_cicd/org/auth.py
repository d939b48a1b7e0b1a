"""Salesforce org authentication for CI pipelines.

Logs the ``sf`` CLI into a pipeline environment's org with either an SFDX
Auth URL or the JWT bearer flow, then verifies the connection.
"""

import base64
import binascii
import os
import tempfile
from contextlib import contextmanager
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Iterator, Mapping

from rich.console import Console

from sf_cicd.errors import OrgAuthError
from sf_cicd.org.base import SFCommandResult, SFCommandRunner

console = Console()

PRODUCTION_LOGIN_URL = "https://login.salesforce.com"
SANDBOX_LOGIN_URL = "https://test.salesforce.com"


class OrgEnvironment(str, Enum):
    """Pipeline environments with a Salesforce org behind them."""

    DEV = "DEV"
    STAGING = "STAGING"
    PROD = "PROD"

    @property
    def alias(self) -> str:
        return f"cicd-{self.value.lower()}"

    @property
    def instance_url(self) -> str:
        return PRODUCTION_LOGIN_URL if self is OrgEnvironment.PROD else SANDBOX_LOGIN_URL

    @classmethod
    def parse(cls, name: str) -> "OrgEnvironment":
        """Normalize an environment name (dev, stage, production, ...)."""
        environment = _ENVIRONMENT_NAMES.get(name.strip().upper()) if name else None
        if environment is None:
            raise OrgAuthError(
                f"Invalid environment '{name}'. Valid values: dev, staging, prod"
            )
        return environment


_ENVIRONMENT_NAMES = {
    "DEV": OrgEnvironment.DEV,
    "DEVELOPMENT": OrgEnvironment.DEV,
    "STAGING": OrgEnvironment.STAGING,
    "STAGE": OrgEnvironment.STAGING,
    "STG": OrgEnvironment.STAGING,
    "PROD": OrgEnvironment.PROD,
    "PRODUCTION": OrgEnvironment.PROD,
}


class AuthMethod(str, Enum):
    """Supported login flows."""

    SFDX_URL = "sfdx-url"
    JWT = "jwt"

    @classmethod
    def parse(cls, name: str) -> "AuthMethod":
        try:
            return cls(name)
        except ValueError:
            raise OrgAuthError(
                f"Invalid auth method '{name}'. Valid values: sfdx-url, jwt"
            ) from None


@dataclass(frozen=True)
class OrgCredentials:
    """Secrets needed to log in to one environment's org."""

    sfdx_auth_url: str | None = None
    jwt_key: str | None = None  # base64-encoded private key
    consumer_key: str | None = None
    username: str | None = None

    @classmethod
    def from_env(
        cls,
        environment: OrgEnvironment,
        environ: Mapping[str, str] | None = None,
    ) -> "OrgCredentials":
        """Read credentials from CI secrets exposed as environment variables."""
        environ = os.environ if environ is None else environ
        return cls(
            sfdx_auth_url=environ.get(f"SFDX_AUTH_URL_{environment.value}") or None,
            jwt_key=environ.get("SF_JWT_KEY") or None,
            consumer_key=environ.get("SF_CONSUMER_KEY") or None,
            username=environ.get(f"SF_USERNAME_{environment.value}") or None,
        )


@dataclass
class OrgInfo:
    """Connection details reported by ``sf org display``."""

    alias: str
    org_id: str = ""
    username: str = ""
    instance_url: str = ""
    connected_status: str = ""


class OrgAuthenticator:
    """Authenticates the ``sf`` CLI to a pipeline environment's org."""

    def __init__(
        self,
        environment: OrgEnvironment,
        credentials: OrgCredentials,
        runner: SFCommandRunner | None = None,
        work_dir: Path | None = None,
        verbose: bool = False,
    ):
        """Initialize the authenticator.

        Args:
            environment: Target environment
            credentials: Secrets for that environment
            runner: ``sf`` command runner
            work_dir: Directory for short-lived credential files
            verbose: Enable verbose output
        """
        self.environment = environment
        self.credentials = credentials
        self.runner = runner or SFCommandRunner(verbose=verbose)
        self.work_dir = work_dir
        self.verbose = verbose

    @property
    def alias(self) -> str:
        return self.environment.alias

    def authenticate(self, method: AuthMethod) -> OrgInfo:
        """Log in with the given method and verify the connection."""
        if method is AuthMethod.SFDX_URL:
            self.login_with_sfdx_url()
        else:
            self.login_with_jwt()
        return self.verify()

    def login_with_sfdx_url(self) -> SFCommandResult:
        """Log in using the environment's SFDX Auth URL."""
        auth_url = self.credentials.sfdx_auth_url
        if not auth_url:
            raise OrgAuthError(
                f"SFDX_AUTH_URL_{self.environment.value} not set. "
                "Please ensure the environment variable is configured in CI secrets"
            )

        console.print("[green]→ Authenticating using SFDX Auth URL...[/green]")

        with self._secret_file(auth_url.encode(), suffix=".txt") as url_file:
            result = self.runner.run(
                [
                    "org", "login", "sfdx-url",
                    "--sfdx-url-file", str(url_file),
                    "--alias", self.alias,
                    "--set-default",
                ]
            )

        return self._check_login(result)

    def login_with_jwt(self) -> SFCommandResult:
        """Log in using the JWT bearer flow."""
        creds = self.credentials
        if not creds.username:
            raise OrgAuthError(f"SF_USERNAME_{self.environment.value} not set")
        if not creds.jwt_key:
            raise OrgAuthError("SF_JWT_KEY not set")
        if not creds.consumer_key:
            raise OrgAuthError("SF_CONSUMER_KEY not set")

        try:
            key_bytes = base64.b64decode(creds.jwt_key)
        except (binascii.Error, ValueError) as e:
            raise OrgAuthError(f"SF_JWT_KEY is not valid base64: {e}") from e

        instance_url = self.environment.instance_url
        console.print("[green]→ Authenticating using JWT Bearer Flow...[/green]")
        console.print(f"Instance URL: {instance_url}")
        console.print(f"Username: {creds.username}")

        with self._secret_file(key_bytes, suffix=".key") as key_file:
            result = self.runner.run(
                [
                    "org", "login", "jwt",
                    "--username", creds.username,
                    "--jwt-key-file", str(key_file),
                    "--client-id", creds.consumer_key,
                    "--instance-url", instance_url,
                    "--alias", self.alias,
                    "--set-default",
                ]
            )

        return self._check_login(result)

    def verify(self) -> OrgInfo:
        """Confirm the alias is usable via ``sf org display``."""
        result = self.runner.run(["org", "display"], target_org=self.alias)
        if not result.success:
            raise OrgAuthError(f"Verification failed: {result.error_message}")

        data = result.data
        return OrgInfo(
            alias=self.alias,
            org_id=data.get("id", ""),
            username=data.get("username", ""),
            instance_url=data.get("instanceUrl", ""),
            connected_status=data.get("connectedStatus", ""),
        )

    def _check_login(self, result: SFCommandResult) -> SFCommandResult:
        if not result.success:
            raise OrgAuthError(f"Authentication failed: {result.error_message}")
        console.print("[green]✓ Authentication successful[/green]")
        return result

    @contextmanager
    def _secret_file(self, content: bytes, suffix: str) -> Iterator[Path]:
        """Write a secret to an owner-only file and remove it afterwards."""
        fd, name = tempfile.mkstemp(suffix=suffix, dir=self.work_dir)
        path = Path(name)
        try:
            os.chmod(path, 0o600)
            with os.fdopen(fd, "wb") as f:
                f.write(content)
            yield path
        finally:
            path.unlink(missing_ok=True)
