"""IIS feature installation and HTTPS certificate binding."""

import re
from typing import Callable, Iterable, List, Optional

from sageprovisioner.constants import (
    CERTIFICATE_FRIENDLY_NAME,
    CERTIFICATE_VALIDITY_YEARS,
    IIS_APP_ID,
)
from sageprovisioner.errors import ProvisionerError
from sageprovisioner.services.command_runner import powershell_literal, single_line


class WebFeatureService:
    """Enables Windows optional features through DISM."""

    DISM = ["dism", "/online", "/english"]
    # DISM exits with 3010 when the change needs a reboot to finish.
    SUCCESS_CODES = (0, 3010)

    def __init__(self, logger, run_cmd: Callable):
        self.logger = logger
        self.run_cmd = run_cmd

    @staticmethod
    def parse_state(output: str) -> Optional[str]:
        match = re.search(r"^\s*State\s*:\s*(.+?)\s*$", output, flags=re.MULTILINE)
        return match.group(1) if match else None

    def feature_state(self, feature: str) -> Optional[str]:
        result = self.run_cmd(
            self.DISM + ["/get-featureinfo", f"/featurename:{feature}"],
            check=False,
            capture_output=True,
        )
        if result.returncode != 0:
            return None
        return self.parse_state(result.stdout or "")

    def enable_feature(self, feature: str):
        result = self.run_cmd(
            self.DISM + ["/enable-feature", f"/featurename:{feature}", "/all", "/norestart"],
            check=False,
            capture_output=True,
        )
        if result.returncode not in self.SUCCESS_CODES:
            details = single_line(result.stdout or result.stderr or "")
            raise ProvisionerError(
                f"Could not enable Windows feature {feature} ({result.returncode}). {details}".strip()
            )
        if result.returncode == 3010:
            self.logger.warning("Windows feature %s requires a reboot to complete.", feature)

    def ensure_features(self, features: Iterable[str]) -> List[str]:
        enabled = []
        for feature in features:
            state = self.feature_state(feature)
            if state == "Enabled":
                self.logger.debug("Windows feature %s already enabled.", feature)
                continue
            if state is None:
                raise ProvisionerError(
                    f"Windows feature {feature} is not available on this system."
                )
            self.enable_feature(feature)
            enabled.append(feature)

        if enabled:
            self.logger.info("Enabled Windows features: %s", ", ".join(enabled))
        else:
            self.logger.info("All required Windows features are already enabled.")
        return enabled


class CertificateService:
    """Reuses or mints a self-signed certificate and binds it for HTTPS."""

    STORE_PATH = "Cert:\\LocalMachine\\My"
    # Certificates closer than this to expiry are replaced.
    RENEWAL_DAYS = 30

    def __init__(self, logger, run_cmd: Callable, run_powershell: Callable, site_name: str):
        self.logger = logger
        self.run_cmd = run_cmd
        self.run_powershell = run_powershell
        self.site_name = site_name

    @staticmethod
    def _last_line(result) -> str:
        lines = [line.strip() for line in (result.stdout or "").splitlines() if line.strip()]
        return lines[-1] if lines else ""

    def find_valid_certificate(self, friendly_name: str = CERTIFICATE_FRIENDLY_NAME) -> Optional[str]:
        script = f"""
$threshold = (Get-Date).AddDays({self.RENEWAL_DAYS})
Get-ChildItem -Path {powershell_literal(self.STORE_PATH)} |
    Where-Object {{ $_.FriendlyName -eq {powershell_literal(friendly_name)} -and $_.HasPrivateKey -and $_.NotAfter -gt $threshold }} |
    Sort-Object -Property NotAfter -Descending |
    Select-Object -First 1 -ExpandProperty Thumbprint
"""
        thumbprint = self._last_line(self.run_powershell(script, check=True, capture_output=True))
        return thumbprint.upper() or None

    def create_certificate(
        self,
        dns_name: str,
        friendly_name: str = CERTIFICATE_FRIENDLY_NAME,
        validity_years: int = CERTIFICATE_VALIDITY_YEARS,
    ) -> str:
        script = f"""
$cert = New-SelfSignedCertificate -DnsName {powershell_literal(dns_name)} `
    -CertStoreLocation {powershell_literal(self.STORE_PATH)} `
    -FriendlyName {powershell_literal(friendly_name)} `
    -NotAfter (Get-Date).AddYears({validity_years}) -ErrorAction Stop
$cert.Thumbprint
"""
        thumbprint = self._last_line(self.run_powershell(script, check=True, capture_output=True))
        if not thumbprint:
            raise ProvisionerError("New-SelfSignedCertificate did not return a thumbprint.")
        self.logger.info("Created self-signed certificate %s for %s.", thumbprint, dns_name)
        return thumbprint.upper()

    def ensure_site_binding(self, port: int):
        site = powershell_literal(self.site_name)
        script = f"""
Import-Module WebAdministration
if (-not (Get-WebBinding -Name {site} -Protocol https -Port {port})) {{
    New-WebBinding -Name {site} -Protocol https -Port {port} -IPAddress '*' -ErrorAction Stop
    Write-Output 'created'
}}
"""
        result = self.run_powershell(script, check=True, capture_output=True)
        if self._last_line(result) == "created":
            self.logger.info("Added https binding on port %s to '%s'.", port, self.site_name)

    @staticmethod
    def parse_bound_hash(output: str) -> Optional[str]:
        match = re.search(r"Certificate Hash\s*:\s*([0-9a-fA-F]+)", output)
        return match.group(1).upper() if match else None

    def bound_certificate(self, port: int) -> Optional[str]:
        result = self.run_cmd(
            ["netsh", "http", "show", "sslcert", f"ipport=0.0.0.0:{port}"],
            check=False,
            capture_output=True,
        )
        if result.returncode != 0:
            return None
        return self.parse_bound_hash(result.stdout or "")

    def bind_certificate(self, thumbprint: str, port: int) -> bool:
        ipport = f"ipport=0.0.0.0:{port}"
        current = self.bound_certificate(port)
        if current == thumbprint.upper():
            self.logger.info("Certificate %s already bound to port %s.", thumbprint, port)
            return False

        # update swaps the hash in place so a failure leaves the old binding intact
        action = "update" if current else "add"
        self.run_cmd(
            [
                "netsh",
                "http",
                action,
                "sslcert",
                ipport,
                f"certhash={thumbprint}",
                f"appid={IIS_APP_ID}",
                "certstorename=MY",
            ],
            check=True,
            capture_output=True,
        )
        self.logger.info("Bound certificate %s to port %s.", thumbprint, port)
        return True

    def ensure_bound_certificate(self, dns_name: str, port: int) -> str:
        thumbprint = self.find_valid_certificate()
        if thumbprint:
            self.logger.info("Reusing certificate %s.", thumbprint)
        else:
            thumbprint = self.create_certificate(dns_name)

        self.ensure_site_binding(port)
        self.bind_certificate(thumbprint, port)
        return thumbprint
