"""SQL Server query execution and object provisioning."""

import time
from typing import Callable, Iterable, List

from sageprovisioner.constants import (
    MIXED_AUTH_LOGIN_MODE,
    READINESS_ATTEMPTS,
    READINESS_DELAY_SECONDS,
)
from sageprovisioner.errors import ProvisionerError
from sageprovisioner.models import ProvisioningTarget


def quote_identifier(name: str) -> str:
    return "[" + name.replace("]", "]]") + "]"


def quote_literal(value: str) -> str:
    return "N'" + value.replace("'", "''") + "'"


class SqlEngineService:
    """Runs T-SQL batches through sqlcmd using Windows authentication.

    Batches are written to sqlcmd's stdin so that statements carrying a
    password never show up in the process list or in the log.
    """

    CREATED_MARKER = "created"
    EXISTS_MARKER = "exists"

    def __init__(self, logger, run_cmd: Callable):
        self.logger = logger
        self.run_cmd = run_cmd

    def build_sqlcmd(self, connection_target: str) -> List[str]:
        return ["sqlcmd", "-S", connection_target, "-E", "-b", "-I", "-h", "-1"]

    def execute(self, connection_target: str, query: str, check: bool = True):
        return self.run_cmd(
            self.build_sqlcmd(connection_target),
            check=check,
            capture_output=True,
            input_text=f"SET NOCOUNT ON;\n{query}\nGO\n",
        )

    def wait_until_ready(
        self,
        connection_target: str,
        max_retries: int = READINESS_ATTEMPTS,
        delay: float = READINESS_DELAY_SECONDS,
    ):
        for attempt in range(1, max_retries + 1):
            result = self.execute(connection_target, "SELECT 1;", check=False)
            if result.returncode == 0:
                self.logger.debug("SQL Server %s accepts connections.", connection_target)
                return
            if attempt < max_retries:
                time.sleep(delay)

        raise ProvisionerError(
            f"SQL Server {connection_target} did not accept connections after restart. "
            "Check the SQL Server error log and service status."
        )

    @staticmethod
    def build_mixed_auth_query() -> str:
        return (
            "EXEC xp_instance_regwrite N'HKEY_LOCAL_MACHINE', "
            "N'Software\\Microsoft\\MSSQLServer\\MSSQLServer', "
            f"N'LoginMode', REG_DWORD, {MIXED_AUTH_LOGIN_MODE};"
        )

    @classmethod
    def build_login_query(cls, login: str, password: str, server_role: str) -> str:
        return f"""
IF NOT EXISTS (SELECT 1 FROM sys.server_principals WHERE name = {quote_literal(login)})
BEGIN
    CREATE LOGIN {quote_identifier(login)} WITH PASSWORD = {quote_literal(password)},
        CHECK_POLICY = OFF, CHECK_EXPIRATION = OFF;
    PRINT N'{cls.CREATED_MARKER}';
END
ELSE
    PRINT N'{cls.EXISTS_MARKER}';
ALTER SERVER ROLE {quote_identifier(server_role)} ADD MEMBER {quote_identifier(login)};
""".strip()

    @classmethod
    def build_database_query(cls, target: ProvisioningTarget) -> str:
        name = quote_literal(target.name)
        return f"""
IF DB_ID({name}) IS NULL
BEGIN
    CREATE DATABASE {quote_identifier(target.name)} COLLATE {target.collation};
    PRINT N'{cls.CREATED_MARKER}';
END
ELSE
    PRINT N'{cls.EXISTS_MARKER}:' + CONVERT(nvarchar(128), DATABASEPROPERTYEX({name}, 'Collation'));
""".strip()

    @classmethod
    def build_user_query(cls, database: str, login: str, database_role: str) -> str:
        return f"""
USE {quote_identifier(database)};
IF NOT EXISTS (SELECT 1 FROM sys.database_principals WHERE name = {quote_literal(login)})
BEGIN
    CREATE USER {quote_identifier(login)} FOR LOGIN {quote_identifier(login)};
    PRINT N'{cls.CREATED_MARKER}';
END
ELSE
    PRINT N'{cls.EXISTS_MARKER}';
ALTER ROLE {quote_identifier(database_role)} ADD MEMBER {quote_identifier(login)};
""".strip()

    def _created(self, result) -> bool:
        lines = [line.strip() for line in (result.stdout or "").splitlines()]
        return self.CREATED_MARKER in lines

    def enable_mixed_auth(self, connection_target: str):
        self.execute(connection_target, self.build_mixed_auth_query())
        self.logger.info("Mixed-mode authentication set on %s.", connection_target)

    def ensure_login(self, connection_target: str, login: str, secret, server_role: str):
        query = self.build_login_query(login, secret.reveal(), server_role)
        result = self.execute(connection_target, query)
        if self._created(result):
            self.logger.info("Created login %s.", login)
        else:
            self.logger.info("Login %s already exists; skipping creation.", login)

    def ensure_database(self, connection_target: str, target: ProvisioningTarget):
        result = self.execute(connection_target, self.build_database_query(target))
        if self._created(result):
            self.logger.info("Created database %s (%s).", target.name, target.collation)
            return

        collation = ""
        for line in (result.stdout or "").splitlines():
            if line.strip().startswith(f"{self.EXISTS_MARKER}:"):
                collation = line.strip().split(":", 1)[1]
        if collation and collation != target.collation:
            self.logger.warning(
                "Database %s exists with collation %s instead of %s.",
                target.name,
                collation,
                target.collation,
            )
        else:
            self.logger.info("Database %s already exists; skipping creation.", target.name)

    def ensure_databases(self, connection_target: str, targets: Iterable[ProvisioningTarget]):
        for target in targets:
            self.ensure_database(connection_target, target)

    def ensure_database_users(
        self,
        connection_target: str,
        targets: Iterable[ProvisioningTarget],
        login: str,
        database_role: str,
    ):
        for target in targets:
            result = self.execute(
                connection_target, self.build_user_query(target.name, login, database_role)
            )
            if self._created(result):
                self.logger.info("Mapped %s to %s in %s.", login, database_role, target.name)
            else:
                self.logger.info("User %s already exists in %s; role membership refreshed.", login, target.name)
