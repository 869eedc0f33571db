"""Windows service control for the database engine."""

from typing import Callable

from sageprovisioner.constants import DEFAULT_INSTANCE_NAME
from sageprovisioner.errors import ProvisionerError
from sageprovisioner.services.command_runner import powershell_literal


class ServiceControlService:
    def __init__(self, logger, run_powershell: Callable):
        self.logger = logger
        self.run_powershell = run_powershell

    @staticmethod
    def sql_service_name(instance_name: str) -> str:
        if instance_name.upper() == DEFAULT_INSTANCE_NAME:
            return DEFAULT_INSTANCE_NAME
        return f"MSSQL${instance_name}"

    def restart(self, service_name: str):
        name = powershell_literal(service_name)
        script = (
            f"Restart-Service -Name {name} -Force -ErrorAction Stop\n"
            f"(Get-Service -Name {name} -ErrorAction Stop).Status\n"
        )
        result = self.run_powershell(script, check=True, capture_output=True)
        status = (result.stdout or "").strip().splitlines()
        if not status or status[-1].strip() != "Running":
            raise ProvisionerError(
                f"Service {service_name} is not running after restart "
                f"(status: {status[-1].strip() if status else 'unknown'})."
            )
        self.logger.info("Service %s restarted.", service_name)
