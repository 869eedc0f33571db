"""System ODBC data source registration."""

from typing import Callable, Iterable, List

from sageprovisioner.constants import ODBC_DRIVER_NAME
from sageprovisioner.errors import ProvisionerError
from sageprovisioner.models import DataSourceEntry
from sageprovisioner.services.command_runner import powershell_literal


class DataSourceService:
    """Creates or overwrites system DSNs with the ODBC PowerShell cmdlets."""

    def __init__(self, logger, run_powershell: Callable, platform: str):
        self.logger = logger
        self.run_powershell = run_powershell
        self.platform = platform

    def build_script(self, entry: DataSourceEntry, connection_target: str, login: str) -> str:
        name = powershell_literal(entry.logical_name)
        platform = powershell_literal(self.platform)
        driver = powershell_literal(ODBC_DRIVER_NAME)
        properties = ", ".join(
            powershell_literal(item)
            for item in (
                f"Server={connection_target}",
                f"Database={entry.target.name}",
                f"LastUser={login}",
                "Trusted_Connection=No",
            )
        )
        return f"""
$properties = @({properties})
$existing = Get-OdbcDsn -Name {name} -DsnType System -Platform {platform} -ErrorAction SilentlyContinue
if ($existing -and $existing.DriverName -eq {driver}) {{
    Set-OdbcDsn -Name {name} -DsnType System -Platform {platform} -SetPropertyValue $properties -ErrorAction Stop
    Write-Output 'updated'
}} else {{
    if ($existing) {{
        Remove-OdbcDsn -Name {name} -DsnType System -Platform {platform} -ErrorAction Stop
    }}
    Add-OdbcDsn -Name {name} -DriverName {driver} -DsnType System -Platform {platform} -SetPropertyValue $properties -ErrorAction Stop
    Write-Output 'created'
}}
"""

    def register(self, entry: DataSourceEntry, connection_target: str, login: str):
        result = self.run_powershell(
            self.build_script(entry, connection_target, login),
            check=True,
            capture_output=True,
        )
        action = "updated" if "updated" in (result.stdout or "") else "created"
        self.logger.info(
            "Data source %s %s -> %s/%s (%s).",
            entry.logical_name,
            action,
            connection_target,
            entry.target.name,
            self.platform,
        )

    def register_all(
        self, entries: Iterable[DataSourceEntry], connection_target: str, login: str
    ) -> List[str]:
        """Registers every entry; one failing entry does not stop the others."""
        entries = list(entries)
        failures = []
        for entry in entries:
            try:
                self.register(entry, connection_target, login)
            except ProvisionerError as exc:
                self.logger.warning("Data source %s failed: %s", entry.logical_name, exc)
                failures.append(entry.logical_name)

        if failures:
            raise ProvisionerError(f"Could not register data source(s): {', '.join(failures)}.")
        return [entry.logical_name for entry in entries]
