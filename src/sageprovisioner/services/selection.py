"""Operator instance selection."""

import re
from typing import Callable, Sequence

from rich.table import Table

from sageprovisioner.errors import SelectionError
from sageprovisioner.errors_catalog import actionable_error

_DECIMAL = re.compile(r"-?[0-9]+")


def select_instance(candidates: Sequence[str], raw_input: str) -> str:
    """Resolves a 1-based index typed by the operator to a candidate.

    Pure function: no prompting, no logging.
    """
    count = len(candidates)
    value = (raw_input or "").strip()
    if not _DECIMAL.fullmatch(value):
        raise SelectionError(
            actionable_error("not_a_number", value=value, count=str(count)),
            reason=SelectionError.NOT_A_NUMBER,
        )
    index = int(value)

    position = index - 1
    if position < 0 or position >= count:
        raise SelectionError(
            actionable_error("out_of_range", value=str(index), count=str(count)),
            reason=SelectionError.OUT_OF_RANGE,
        )
    return candidates[position]


def render_candidates(candidates: Sequence[str]) -> Table:
    table = Table(title="Discovered SQL Server instances")
    table.add_column("#", justify="right", style="cyan")
    table.add_column("Instance")
    for number, candidate in enumerate(candidates, start=1):
        table.add_row(str(number), candidate)
    return table


def prompt_for_instance(candidates: Sequence[str], console, prompt_func: Callable) -> str:
    """Shows the numbered list and returns the operator's raw answer."""
    console.print(render_candidates(candidates))
    return str(prompt_func(f"Select an instance [1-{len(candidates)}]", type=str))
