import subprocess

import pytest

import sageprovisioner.services.sql_engine as sql_engine_module
from sageprovisioner.errors import ProvisionerError
from sageprovisioner.models import ProvisioningTarget
from sageprovisioner.services.secret import OpaqueSecret
from sageprovisioner.services.sql_engine import SqlEngineService, quote_identifier, quote_literal


class RecordingLogger:
    def __init__(self):
        self.records = []

    def _log(self, level, message, *args):
        self.records.append((level, message % args if args else message))

    def info(self, message, *args, **_kwargs):
        self._log("INFO", message, *args)

    def warning(self, message, *args, **_kwargs):
        self._log("WARNING", message, *args)

    def debug(self, message, *args, **_kwargs):
        self._log("DEBUG", message, *args)


class FakeSqlcmd:
    def __init__(self, stdout="", returncode=0):
        self.calls = []
        self.stdout = stdout
        self.returncode = returncode

    def __call__(self, cmd, check=True, capture_output=False, input_text=None):
        self.calls.append({"cmd": cmd, "input_text": input_text, "check": check})
        return subprocess.CompletedProcess(cmd, self.returncode, stdout=self.stdout, stderr="")


TARGET = ProvisioningTarget(name="VAULT", collation="Latin1_General_BIN")


def test_quoting_helpers_escape_delimiters():
    assert quote_identifier("we]ird") == "[we]]ird]"
    assert quote_literal("it's") == "N'it''s'"


def test_execute_sends_batch_on_stdin_with_windows_auth():
    fake = FakeSqlcmd()
    service = SqlEngineService(logger=RecordingLogger(), run_cmd=fake)

    service.execute("localhost\\SQLEXPRESS", "SELECT 1;")

    call = fake.calls[0]
    assert call["cmd"][:5] == ["sqlcmd", "-S", "localhost\\SQLEXPRESS", "-E", "-b"]
    assert "SELECT 1;" in call["input_text"]
    assert call["input_text"].rstrip().endswith("GO")


def test_login_query_is_guarded_and_escapes_password():
    query = SqlEngineService.build_login_query("SAGEADMIN", "pa'ss", "sysadmin")

    assert "IF NOT EXISTS (SELECT 1 FROM sys.server_principals WHERE name = N'SAGEADMIN')" in query
    assert "CREATE LOGIN [SAGEADMIN] WITH PASSWORD = N'pa''ss'" in query
    assert "ALTER SERVER ROLE [sysadmin] ADD MEMBER [SAGEADMIN];" in query


def test_database_query_uses_fixed_collation_and_existence_guard():
    query = SqlEngineService.build_database_query(TARGET)

    assert "IF DB_ID(N'VAULT') IS NULL" in query
    assert "CREATE DATABASE [VAULT] COLLATE Latin1_General_BIN;" in query


def test_user_query_maps_login_to_owner_role():
    query = SqlEngineService.build_user_query("STORE", "SAGEADMIN", "db_owner")

    assert query.startswith("USE [STORE];")
    assert "CREATE USER [SAGEADMIN] FOR LOGIN [SAGEADMIN];" in query
    assert "ALTER ROLE [db_owner] ADD MEMBER [SAGEADMIN];" in query


def test_mixed_auth_query_writes_login_mode_two():
    assert "N'LoginMode', REG_DWORD, 2;" in SqlEngineService.build_mixed_auth_query()


def test_ensure_login_reveals_secret_only_in_stdin_payload():
    fake = FakeSqlcmd(stdout="created\n")
    logger = RecordingLogger()
    service = SqlEngineService(logger=logger, run_cmd=fake)

    service.ensure_login("localhost\\SAGE300", "SAGEADMIN", OpaqueSecret("S3cret!"), "sysadmin")

    call = fake.calls[0]
    assert "S3cret!" in call["input_text"]
    assert all("S3cret!" not in part for part in call["cmd"])
    assert all("S3cret!" not in message for _, message in logger.records)
    assert ("INFO", "Created login SAGEADMIN.") in logger.records


def test_ensure_login_reports_existing_login():
    logger = RecordingLogger()
    service = SqlEngineService(logger=logger, run_cmd=FakeSqlcmd(stdout="exists\n"))

    service.ensure_login("localhost\\SAGE300", "SAGEADMIN", OpaqueSecret("pw"), "sysadmin")

    assert ("INFO", "Login SAGEADMIN already exists; skipping creation.") in logger.records


def test_ensure_database_warns_on_collation_mismatch():
    logger = RecordingLogger()
    service = SqlEngineService(
        logger=logger, run_cmd=FakeSqlcmd(stdout="exists:SQL_Latin1_General_CP1_CI_AS\n")
    )

    service.ensure_database("localhost\\SAGE300", TARGET)

    assert logger.records[-1][0] == "WARNING"
    assert "SQL_Latin1_General_CP1_CI_AS" in logger.records[-1][1]


def test_ensure_databases_runs_one_batch_per_target():
    fake = FakeSqlcmd(stdout="exists:Latin1_General_BIN\n")
    service = SqlEngineService(logger=RecordingLogger(), run_cmd=fake)
    targets = [TARGET, ProvisioningTarget(name="STORE", collation="Latin1_General_BIN")]

    service.ensure_databases("localhost\\SAGE300", targets)

    assert len(fake.calls) == 2
    assert "DB_ID(N'STORE')" in fake.calls[1]["input_text"]


def test_wait_until_ready_retries_until_connection_succeeds(monkeypatch):
    monkeypatch.setattr(sql_engine_module.time, "sleep", lambda _seconds: None)
    outcomes = iter([1, 1, 0])

    def fake_run_cmd(cmd, check=True, capture_output=False, input_text=None):
        return subprocess.CompletedProcess(cmd, next(outcomes), stdout="", stderr="")

    service = SqlEngineService(logger=RecordingLogger(), run_cmd=fake_run_cmd)

    service.wait_until_ready("localhost\\SAGE300", max_retries=5)


def test_wait_until_ready_gives_up(monkeypatch):
    sleeps = []
    monkeypatch.setattr(sql_engine_module.time, "sleep", sleeps.append)
    fake = FakeSqlcmd(returncode=1)
    service = SqlEngineService(logger=RecordingLogger(), run_cmd=fake)

    with pytest.raises(ProvisionerError, match="did not accept connections"):
        service.wait_until_ready("localhost\\SAGE300", max_retries=3, delay=0.5)

    assert len(fake.calls) == 3
    assert sleeps == [0.5, 0.5]
