import logging
import socket
import subprocess
from typing import Callable, List, Optional, Sequence

import click
from rich.console import Console
from rich.table import Table

from . import constants
from .errors import ProvisionerError
from .errors_catalog import actionable_error
from .models import Criticality, ExecutionContext, RunReport, RunStatus, Step, StepStatus
from .orchestrator import StepOrchestrator
from .services.command_runner import CommandRunner
from .services.data_sources import DataSourceService
from .services.discovery import DiscoveryService
from .services.firewall import FirewallService
from .services.registry import RegistryService
from .services.secret import OpaqueSecret, SecretRedactionFilter, collect_secret
from .services.selection import prompt_for_instance, select_instance
from .services.service_control import ServiceControlService
from .services.sql_engine import SqlEngineService
from .services.web_server import CertificateService, WebFeatureService
from .step_library import StepLibrary

console = Console()
logger = logging.getLogger("sageprovisioner")

STATUS_STYLES = {
    StepStatus.OK: "green",
    StepStatus.FAILED: "red",
    StepStatus.NOT_RUN: "dim",
}


class SageProvisioner:
    def __init__(
        self,
        host: str = constants.DEFAULT_HOST,
        selection: Optional[str] = None,
        dsn_platform: str = constants.DEFAULT_DSN_PLATFORM,
        dry_run: bool = False,
        log_file: Optional[str] = None,
        prompt_func: Callable = click.prompt,
    ):
        self.host = (host or "").strip()
        if not self.host or "\\" in self.host:
            raise ProvisionerError(
                f"Invalid host '{host}'. Use a host name without an instance suffix."
            )
        if dsn_platform not in constants.DSN_PLATFORMS:
            raise ProvisionerError(
                f"Invalid DSN platform '{dsn_platform}'. Use one of: {', '.join(constants.DSN_PLATFORMS)}."
            )

        self.selection = selection
        self.dsn_platform = dsn_platform
        self.dry_run = dry_run
        self.log_file = log_file
        self.prompt_func = prompt_func

        self.command_runner = CommandRunner(logger=logger)
        self.discovery_service = DiscoveryService(logger=logger, run_cmd=self._run_cmd)
        self.sql_engine = SqlEngineService(logger=logger, run_cmd=self._run_cmd)
        self.step_library = StepLibrary(
            registry_service=RegistryService(logger=logger, run_cmd=self._run_cmd),
            sql_engine=self.sql_engine,
            service_control=ServiceControlService(logger=logger, run_powershell=self._run_powershell),
            firewall_service=FirewallService(logger=logger, run_cmd=self._run_cmd),
            web_feature_service=WebFeatureService(logger=logger, run_cmd=self._run_cmd),
            certificate_service=CertificateService(
                logger=logger,
                run_cmd=self._run_cmd,
                run_powershell=self._run_powershell,
                site_name=constants.WEB_SITE_NAME,
            ),
            data_source_service=DataSourceService(
                logger=logger,
                run_powershell=self._run_powershell,
                platform=self.dsn_platform,
            ),
            dns_name=socket.gethostname(),
        )
        self.orchestrator = StepOrchestrator(logger=logger, console=console)

    def _run_cmd(
        self,
        cmd: List[str],
        check: bool = True,
        capture_output: bool = False,
        input_text: Optional[str] = None,
    ) -> subprocess.CompletedProcess:
        return self.command_runner.run(
            cmd, check=check, capture_output=capture_output, input_text=input_text
        )

    def _run_powershell(
        self, script: str, check: bool = True, capture_output: bool = True
    ) -> subprocess.CompletedProcess:
        return self.command_runner.run_powershell(script, check=check, capture_output=capture_output)

    def discover_instances(self) -> List[str]:
        candidates = self.discovery_service.discover()
        logger.info("Found %s instance(s): %s", len(candidates), ", ".join(candidates))
        return candidates

    def choose_instance(self, candidates: Sequence[str]) -> str:
        if self.selection is not None:
            raw_input = self.selection
        else:
            raw_input = prompt_for_instance(candidates, console, self.prompt_func)

        instance = select_instance(candidates, raw_input)
        logger.info("Selected instance %s.", instance)
        return instance

    def collect_credential(self) -> OpaqueSecret:
        return collect_secret(
            f"Password for SQL login {constants.LOGIN_NAME}",
            prompt_func=self.prompt_func,
        )

    def print_plan(self, steps: Sequence[Step], connection_target: str):
        table = Table(title=f"Provisioning plan for {connection_target}")
        table.add_column("#", justify="right", style="cyan")
        table.add_column("Step")
        table.add_column("On failure")
        for number, step in enumerate(steps, start=1):
            policy = "halt" if step.criticality == Criticality.FATAL else "warn and continue"
            table.add_row(str(number), step.name, policy)
        console.print(table)

    def render_report(self, report: RunReport):
        table = Table(title=f"Provisioning result: {report.status.value}")
        table.add_column("Step")
        table.add_column("Criticality")
        table.add_column("Status")
        table.add_column("Error", overflow="fold")
        for outcome in report.outcomes:
            style = STATUS_STYLES[outcome.status]
            table.add_row(
                outcome.name,
                outcome.criticality.value,
                f"[{style}]{outcome.status.value}[/{style}]",
                outcome.error or "",
            )
        console.print(table)

    def run(self) -> int:
        secret_filter: Optional[SecretRedactionFilter] = None

        try:
            logger.info("Starting SageProvisioner...")

            candidates = self.discover_instances()
            instance = self.choose_instance(candidates)
            steps = self.step_library.steps()

            if self.dry_run:
                self.print_plan(steps, f"{self.host}\\{instance}")
                logger.info("Dry run complete. No changes were made.")
                return 0

            credential = self.collect_credential()
            secret_filter = SecretRedactionFilter(credential)
            logger.addFilter(secret_filter)

            ctx = ExecutionContext.build(self.host, instance, credential, logger)
            logger.info("Provisioning %s with %s steps.", ctx.connection_target, len(steps))

            report = self.orchestrator.run(steps, ctx)
            self.render_report(report)

            if report.status == RunStatus.HALTED:
                console.print(
                    "[bold red]"
                    + actionable_error(
                        "run_halted",
                        step=report.halted_at or "<unknown>",
                        log_file=self.log_file or "the console output",
                    )
                    + "[/bold red]"
                )
                return report.exit_code

            if report.warnings:
                names = ", ".join(outcome.name for outcome in report.warnings)
                logger.warning("Provisioning completed with warnings in: %s", names)
            else:
                logger.info("Provisioning completed successfully.")
            return report.exit_code

        except (KeyboardInterrupt, click.Abort):
            console.print("[bold red]Operation cancelled by user.[/bold red]")
            logger.info("Operation cancelled by user")
            return 1
        except ProvisionerError as exc:
            console.print(f"[bold red]Error:[/bold red] {exc}")
            logger.error(str(exc))
            return 1
        except Exception as exc:
            console.print(f"[bold red]Unexpected error:[/bold red] {exc}")
            logger.exception("Unexpected error")
            return 1
        finally:
            if secret_filter is not None:
                logger.removeFilter(secret_filter)
