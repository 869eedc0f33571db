"""Sequential step execution with per-step failure policy."""

from typing import Sequence

from .errors import ProvisionerError, StepError
from .models import (
    Criticality,
    ExecutionContext,
    RunReport,
    RunStatus,
    Step,
    StepOutcome,
    StepStatus,
)


class StepOrchestrator:
    """Runs provisioning steps in order against one execution context.

    A failed FATAL step halts the run and leaves every later step NOT_RUN.
    A failed WARN step is recorded and the run moves on. Steps are never
    retried; re-running the tool is the recovery path.
    """

    def __init__(self, logger, console=None):
        self.logger = logger
        self.console = console

    def plan(self, steps: Sequence[Step]) -> RunReport:
        return RunReport(
            outcomes=[StepOutcome(name=step.name, criticality=step.criticality) for step in steps]
        )

    def run(self, steps: Sequence[Step], ctx: ExecutionContext) -> RunReport:
        report = self.plan(steps)
        report.status = RunStatus.RUNNING
        total = len(steps)

        for position, (step, outcome) in enumerate(zip(steps, report.outcomes), start=1):
            self.logger.debug("Running step %s/%s: %s", position, total, step.name)
            if self.console is not None:
                self.console.print(f"[blue][{position}/{total}] {step.name}...[/blue]")

            try:
                step.action(ctx)
            except ProvisionerError as exc:
                error = StepError(str(exc), step_name=step.name, criticality=step.criticality)
                outcome.status = StepStatus.FAILED
                outcome.error = str(error)

                if step.criticality == Criticality.FATAL:
                    self.logger.error("Step '%s' failed: %s", step.name, error)
                    report.status = RunStatus.HALTED
                    return report

                self.logger.warning("Step '%s' failed, continuing: %s", step.name, error)
                continue

            outcome.status = StepStatus.OK
            self.logger.info("Step '%s' completed.", step.name)

        report.status = RunStatus.COMPLETED
        return report
