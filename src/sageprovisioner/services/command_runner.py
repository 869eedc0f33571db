"""Subprocess execution service for SageProvisioner."""

import subprocess
from typing import List, Optional

from sageprovisioner.errors import CommandNotFoundError, ProvisionerError
from sageprovisioner.errors_catalog import actionable_error


def powershell_literal(value: str) -> str:
    """Quotes a value as a single-quoted PowerShell string."""
    return "'" + value.replace("'", "''") + "'"


def single_line(text: str) -> str:
    """Folds command output onto one log line."""
    return " | ".join(line.strip() for line in text.splitlines() if line.strip())


class CommandRunner:
    """Runs external commands with consistent error handling.

    Payloads passed through ``input_text`` may carry credentials, so they are
    fed on stdin and never written to the log.
    """

    POWERSHELL_CMD = [
        "powershell.exe",
        "-NoProfile",
        "-NonInteractive",
        "-ExecutionPolicy",
        "Bypass",
        "-Command",
        "-",
    ]

    def __init__(self, logger):
        self.logger = logger

    def run(
        self,
        cmd: List[str],
        check: bool = True,
        capture_output: bool = False,
        input_text: Optional[str] = None,
    ) -> subprocess.CompletedProcess:
        cmd_str = " ".join(cmd)
        self.logger.debug("Executing: %s", cmd_str)

        try:
            result = subprocess.run(
                cmd,
                text=True,
                capture_output=capture_output,
                input=input_text,
            )
        except FileNotFoundError as exc:
            raise CommandNotFoundError(
                cmd[0], actionable_error("tool_missing", command=cmd[0])
            ) from exc
        except Exception as exc:
            raise ProvisionerError(f"Failed to execute command: {cmd_str}. {exc}") from exc

        if capture_output and result.stdout:
            self.logger.debug("Command output: %s", single_line(result.stdout))

        if result.returncode == 0:
            return result

        details = ""
        if capture_output:
            details = single_line(result.stderr or "") or single_line(result.stdout or "")
        message = f"Command failed ({result.returncode}): {cmd_str}"
        if details:
            message = f"{message}: {details}"

        if check:
            raise ProvisionerError(message)

        self.logger.debug(message)
        return result

    def run_powershell(
        self,
        script: str,
        check: bool = True,
        capture_output: bool = True,
    ) -> subprocess.CompletedProcess:
        """Runs a PowerShell script read from stdin."""
        return self.run(
            list(self.POWERSHELL_CMD),
            check=check,
            capture_output=capture_output,
            input_text=script,
        )
