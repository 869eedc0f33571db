"""Transient credential handling."""

import logging
from typing import Callable

import click

MASK = "****"


class OpaqueSecret:
    """Holds a credential in memory; only ``reveal()`` exposes it."""

    __slots__ = ("_value",)

    def __init__(self, value: str):
        if not value:
            raise ValueError("Secret value must not be empty.")
        self._value = value

    def reveal(self) -> str:
        return self._value

    def __repr__(self) -> str:
        return f"OpaqueSecret({MASK})"

    __str__ = __repr__


def collect_secret(prompt: str, prompt_func: Callable = click.prompt) -> OpaqueSecret:
    value = prompt_func(prompt, hide_input=True, confirmation_prompt=True, type=str)
    return OpaqueSecret(value)


class SecretRedactionFilter(logging.Filter):
    """Masks a secret in log records before any handler formats them."""

    def __init__(self, secret: OpaqueSecret):
        super().__init__()
        self._secret = secret

    def filter(self, record: logging.LogRecord) -> bool:
        value = self._secret.reveal()
        try:
            message = record.getMessage()
        except (TypeError, ValueError):
            # malformed format args are reported by Handler.handleError
            return True
        if value in message:
            record.msg = message.replace(value, MASK)
            record.args = None
        return True
