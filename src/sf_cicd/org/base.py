"""Salesforce CLI command wrapper."""

import json
import logging
import subprocess
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from rich.console import Console

console = Console()
logger = logging.getLogger("sf_cicd.org")

SF_COMMAND_TIMEOUT_SECONDS = 600


@dataclass
class SFCommandResult:
    """Result of an ``sf`` CLI invocation."""

    success: bool
    data: dict[str, Any] = field(default_factory=dict)
    errors: list[dict[str, Any]] = field(default_factory=list)
    raw_output: str = ""
    exit_code: int = 0

    @property
    def error_message(self) -> str:
        messages = [e["message"] for e in self.errors if "message" in e]
        return "; ".join(messages) or f"exit code {self.exit_code}"


class SFCommandRunner:
    """Runs ``sf`` commands and parses their ``--json`` output."""

    def __init__(
        self,
        sf_cli_path: str = "sf",
        project_dir: Path | None = None,
        verbose: bool = False,
    ):
        self.sf_cli_path = sf_cli_path
        self.project_dir = project_dir or Path.cwd()
        self.verbose = verbose

    def run(
        self,
        args: list[str],
        json_output: bool = True,
        target_org: str | None = None,
    ) -> SFCommandResult:
        """Run a Salesforce CLI command and return structured result."""
        cmd = [self.sf_cli_path] + args

        if json_output:
            cmd.append("--json")

        if target_org:
            cmd.extend(["--target-org", target_org])

        if self.verbose:
            console.print(f"[dim]Running: {' '.join(cmd)}[/dim]")

        result = self._execute(cmd, json_output)
        logger.debug(
            f"SF CLI [{'SUCCESS' if result.success else 'FAILED'}]: {' '.join(cmd)}"
        )
        if not result.success and result.raw_output:
            logger.debug(f"  Output: {result.raw_output[:500]}")
        return result

    def _execute(self, cmd: list[str], json_output: bool) -> SFCommandResult:
        try:
            result = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                cwd=self.project_dir,
                timeout=SF_COMMAND_TIMEOUT_SECONDS,
            )
        except subprocess.TimeoutExpired:
            return SFCommandResult(
                success=False,
                errors=[{"message": f"Command timed out after {SF_COMMAND_TIMEOUT_SECONDS} seconds"}],
                exit_code=-1,
            )
        except FileNotFoundError:
            return SFCommandResult(
                success=False,
                errors=[{"message": f"Salesforce CLI not found at: {self.sf_cli_path}"}],
                exit_code=-1,
            )

        raw_output = result.stdout + result.stderr

        if json_output and result.stdout.strip():
            try:
                output_data = json.loads(result.stdout)
            except json.JSONDecodeError:
                return SFCommandResult(
                    success=False,
                    errors=[{"message": "Failed to parse JSON output", "raw": raw_output}],
                    raw_output=raw_output,
                    exit_code=result.returncode,
                )
            return self._parse_sf_json_output(output_data, result.returncode, raw_output)

        return SFCommandResult(
            success=result.returncode == 0,
            data={"output": result.stdout},
            raw_output=raw_output,
            exit_code=result.returncode,
        )

    def _parse_sf_json_output(
        self, output: dict[str, Any], exit_code: int, raw_output: str
    ) -> SFCommandResult:
        """Parse standard Salesforce CLI JSON output format."""
        status = output.get("status", 1)
        result_data = output.get("result") or {}

        if status == 0:
            return SFCommandResult(
                success=True,
                data=result_data,
                raw_output=raw_output,
                exit_code=exit_code,
            )

        errors = []
        if "message" in output:
            errors.append({"message": output["message"]})
        if "name" in output:
            errors.append({"error_type": output["name"]})
        for warning in output.get("warnings", []):
            errors.append({"warning": warning})

        return SFCommandResult(
            success=False,
            data=result_data,
            errors=errors,
            raw_output=raw_output,
            exit_code=exit_code,
        )
