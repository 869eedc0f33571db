"""Shared domain models for SageProvisioner."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, List, Optional


class Criticality(str, Enum):
    FATAL = "FATAL"
    WARN = "WARN"


class StepStatus(str, Enum):
    NOT_RUN = "NOT_RUN"
    OK = "OK"
    FAILED = "FAILED"


class RunStatus(str, Enum):
    PENDING = "PENDING"
    RUNNING = "RUNNING"
    COMPLETED = "COMPLETED"
    HALTED = "HALTED"


@dataclass(frozen=True)
class ProvisioningTarget:
    """A fixed logical database the downstream application expects."""

    name: str
    collation: str


@dataclass(frozen=True)
class DataSourceEntry:
    """System data source name pointing at one provisioning target."""

    logical_name: str
    target: ProvisioningTarget


@dataclass(frozen=True)
class FirewallRule:
    name: str
    protocol: str
    port: int


@dataclass(frozen=True)
class ExecutionContext:
    """Per-run values shared by every step. Build it with ``ExecutionContext.build``."""

    instance_identifier: str
    connection_target: str
    credential: Any
    logger: Any = field(repr=False)

    @classmethod
    def build(cls, host: str, instance_identifier: str, credential, logger) -> "ExecutionContext":
        clean_host = host.strip()
        clean_instance = instance_identifier.strip()
        if not clean_host or not clean_instance:
            raise ValueError("Host and instance identifier must not be empty.")
        if "\\" in clean_host or "\\" in clean_instance:
            raise ValueError("Host and instance identifier must not contain a backslash.")
        return cls(
            instance_identifier=clean_instance,
            connection_target=f"{clean_host}\\{clean_instance}",
            credential=credential,
            logger=logger,
        )


@dataclass(frozen=True)
class Step:
    name: str
    action: Callable[[ExecutionContext], None]
    criticality: Criticality


@dataclass
class StepOutcome:
    name: str
    criticality: Criticality
    status: StepStatus = StepStatus.NOT_RUN
    error: Optional[str] = None


@dataclass
class RunReport:
    """Outcome of one orchestrated run, one entry per planned step."""

    outcomes: List[StepOutcome]
    status: RunStatus = RunStatus.PENDING

    @property
    def failed_steps(self) -> List[StepOutcome]:
        return [outcome for outcome in self.outcomes if outcome.status == StepStatus.FAILED]

    @property
    def warnings(self) -> List[StepOutcome]:
        return [
            outcome for outcome in self.failed_steps if outcome.criticality == Criticality.WARN
        ]

    @property
    def halted_at(self) -> Optional[str]:
        if self.status != RunStatus.HALTED:
            return None
        for outcome in self.failed_steps:
            if outcome.criticality == Criticality.FATAL:
                return outcome.name
        return None

    @property
    def exit_code(self) -> int:
        return 0 if self.status == RunStatus.COMPLETED else 1

    def outcome(self, name: str) -> StepOutcome:
        for item in self.outcomes:
            if item.name == name:
                return item
        raise KeyError(name)
