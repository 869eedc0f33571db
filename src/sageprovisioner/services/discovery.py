"""SQL Server instance discovery for SageProvisioner."""

from typing import Callable, Iterable, List

from sageprovisioner.errors import CommandNotFoundError, DiscoveryError
from sageprovisioner.errors_catalog import actionable_error
from sageprovisioner.services.command_runner import single_line


class DiscoveryService:
    """Lists named SQL Server instances advertised to this host."""

    DISCOVERY_CMD = ["sqlcmd", "-L"]
    HOST_SEPARATOR = "\\"

    def __init__(self, logger, run_cmd: Callable):
        self.logger = logger
        self.run_cmd = run_cmd

    @classmethod
    def parse_instances(cls, lines: Iterable[str]) -> List[str]:
        """Extracts sorted, unique instance names from ``HOST\\INSTANCE`` rows."""
        found = set()
        for line in lines:
            if cls.HOST_SEPARATOR not in line:
                continue
            instance = line.split(cls.HOST_SEPARATOR, 1)[1].strip()
            if instance:
                found.add(instance)
        return sorted(found)

    def discover(self) -> List[str]:
        self.logger.info("Discovering SQL Server instances...")
        try:
            result = self.run_cmd(self.DISCOVERY_CMD, check=False, capture_output=True)
        except CommandNotFoundError as exc:
            raise DiscoveryError(
                actionable_error("tool_missing", command=exc.command),
                reason=DiscoveryError.TOOL_MISSING,
            ) from exc

        if result.returncode != 0:
            details = single_line(result.stderr or result.stdout or "") or f"exit code {result.returncode}"
            raise DiscoveryError(
                actionable_error("discovery_failed", details=details),
                reason=DiscoveryError.FAILED,
            )

        instances = self.parse_instances((result.stdout or "").splitlines())
        if not instances:
            raise DiscoveryError(actionable_error("no_instances"), reason=DiscoveryError.NONE_FOUND)

        self.logger.debug("Discovered instances: %s", ", ".join(instances))
        return instances
