"""Fixed naming contract expected by the Sage application.

These values are not configurable: the application connects using exactly
these names, so changing any of them breaks the installed client.
"""

from typing import Tuple

from .models import DataSourceEntry, FirewallRule, ProvisioningTarget

DEFAULT_HOST = "localhost"
DEFAULT_LOG_DIR = "logs"
DEFAULT_CONFIG_FILE = ".sageprovisioner.yml"

LOGIN_NAME = "SAGEADMIN"
SERVER_ROLE = "sysadmin"
DATABASE_ROLE = "db_owner"
COLLATION = "Latin1_General_BIN"

SQL_PORT = 1433
SQL_BROWSER_PORT = 1434
SECURE_PORT = 443

# LoginMode registry value: 1 = Windows only, 2 = mixed mode.
MIXED_AUTH_LOGIN_MODE = 2

# Polling bound after a service restart: up to 30 attempts, 2 seconds apart.
READINESS_ATTEMPTS = 30
READINESS_DELAY_SECONDS = 2.0

PROVISIONING_TARGETS: Tuple[ProvisioningTarget, ...] = tuple(
    ProvisioningTarget(name=name, collation=COLLATION)
    for name in ("VAULT", "STORE", "SYSCMP", "COMP01", "PORTAL")
)

DATA_SOURCES: Tuple[DataSourceEntry, ...] = tuple(
    DataSourceEntry(logical_name=f"SAGE_{target.name}", target=target)
    for target in PROVISIONING_TARGETS
)

FIREWALL_RULES: Tuple[FirewallRule, ...] = (
    FirewallRule(name="SageProvisioner SQL Server", protocol="TCP", port=SQL_PORT),
    FirewallRule(name="SageProvisioner SQL Browser", protocol="UDP", port=SQL_BROWSER_PORT),
    FirewallRule(name="SageProvisioner HTTPS", protocol="TCP", port=SECURE_PORT),
)

WEB_FEATURES: Tuple[str, ...] = (
    "IIS-WebServerRole",
    "IIS-WebServer",
    "IIS-CommonHttpFeatures",
    "IIS-StaticContent",
    "IIS-DefaultDocument",
    "IIS-HttpErrors",
    "IIS-ApplicationDevelopment",
    "NetFx4Extended-ASPNET45",
    "IIS-NetFxExtensibility45",
    "IIS-ISAPIExtensions",
    "IIS-ISAPIFilter",
    "IIS-ASPNET45",
    "IIS-HttpCompressionStatic",
    "IIS-ManagementConsole",
)

WEB_SITE_NAME = "Default Web Site"
CERTIFICATE_FRIENDLY_NAME = "SageProvisioner Web"
CERTIFICATE_VALIDITY_YEARS = 5
# Application id used by IIS for HTTP.sys certificate bindings.
IIS_APP_ID = "{4dc3e181-e14b-4a21-b022-59fc669b0914}"

ODBC_DRIVER_NAME = "SQL Server"
DSN_PLATFORMS = ("32-bit", "64-bit")
DEFAULT_DSN_PLATFORM = "32-bit"

SQL_SERVER_REGISTRY_ROOT = r"HKLM\SOFTWARE\Microsoft\Microsoft SQL Server"
DEFAULT_INSTANCE_NAME = "MSSQLSERVER"
