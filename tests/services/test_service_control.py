import subprocess

import pytest

from sageprovisioner.errors import ProvisionerError
from sageprovisioner.services.service_control import ServiceControlService


class DummyLogger:
    def info(self, *_args, **_kwargs):
        return None


def test_sql_service_name_for_default_and_named_instances():
    assert ServiceControlService.sql_service_name("MSSQLSERVER") == "MSSQLSERVER"
    assert ServiceControlService.sql_service_name("SQLEXPRESS") == "MSSQL$SQLEXPRESS"


def test_restart_runs_restart_service_and_checks_status():
    scripts = []

    def fake_powershell(script, check=True, capture_output=True):
        scripts.append(script)
        return subprocess.CompletedProcess(["powershell.exe"], 0, stdout="Running\r\n", stderr="")

    service = ServiceControlService(logger=DummyLogger(), run_powershell=fake_powershell)

    service.restart("MSSQL$SAGE300")

    assert "Restart-Service -Name 'MSSQL$SAGE300' -Force" in scripts[0]


def test_restart_fails_when_service_does_not_come_back():
    def fake_powershell(script, check=True, capture_output=True):
        return subprocess.CompletedProcess(["powershell.exe"], 0, stdout="Stopped\n", stderr="")

    service = ServiceControlService(logger=DummyLogger(), run_powershell=fake_powershell)

    with pytest.raises(ProvisionerError, match="status: Stopped"):
        service.restart("MSSQL$SAGE300")
