"""Windows registry access through reg.exe, scoped to SQL Server settings."""

import re
from typing import Callable, Optional

from sageprovisioner.constants import SQL_SERVER_REGISTRY_ROOT
from sageprovisioner.errors import ProvisionerError


class RegistryService:
    """Reads and writes registry values in the 64-bit view."""

    def __init__(self, logger, run_cmd: Callable):
        self.logger = logger
        self.run_cmd = run_cmd

    @staticmethod
    def parse_value(output: str, value_name: str) -> Optional[str]:
        pattern = re.compile(rf"^\s*{re.escape(value_name)}\s+REG_\w+\s*(.*)$", re.IGNORECASE)
        for line in output.splitlines():
            match = pattern.match(line)
            if match:
                return match.group(1).strip()
        return None

    def query_value(self, key: str, value_name: str) -> Optional[str]:
        result = self.run_cmd(
            ["reg", "query", key, "/v", value_name, "/reg:64"],
            check=False,
            capture_output=True,
        )
        if result.returncode != 0:
            return None
        return self.parse_value(result.stdout or "", value_name)

    def set_value(self, key: str, value_name: str, value_type: str, data: str):
        self.run_cmd(
            ["reg", "add", key, "/v", value_name, "/t", value_type, "/d", data, "/f", "/reg:64"],
            check=True,
            capture_output=True,
        )

    def resolve_instance_id(self, instance_name: str) -> str:
        """Maps an instance name (SQLEXPRESS) to its registry id (MSSQL15.SQLEXPRESS)."""
        key = f"{SQL_SERVER_REGISTRY_ROOT}\\Instance Names\\SQL"
        instance_id = self.query_value(key, instance_name)
        if not instance_id:
            raise ProvisionerError(
                f"SQL Server instance '{instance_name}' is not installed on this host "
                f"(no value under {key})."
            )
        return instance_id

    def configure_tcp(self, instance_name: str, port: int) -> str:
        instance_id = self.resolve_instance_id(instance_name)
        tcp_key = f"{SQL_SERVER_REGISTRY_ROOT}\\{instance_id}\\MSSQLServer\\SuperSocketNetLib\\Tcp"
        ipall_key = f"{tcp_key}\\IPAll"

        self.set_value(tcp_key, "Enabled", "REG_DWORD", "1")
        self.set_value(ipall_key, "TcpDynamicPorts", "REG_SZ", "")
        self.set_value(ipall_key, "TcpPort", "REG_SZ", str(port))
        self.logger.info("TCP/IP enabled for %s on fixed port %s.", instance_id, port)
        return instance_id
