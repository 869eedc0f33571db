"""Actionable error catalog for SageProvisioner."""

from typing import Dict

_ERROR_MESSAGES: Dict[str, Dict[str, str]] = {
    "tool_missing": {
        "what": "Required command not found: {command}.",
        "next": "Install the SQL Server command line utilities and make sure `{command}` is on PATH.",
    },
    "discovery_failed": {
        "what": "Instance discovery failed: {details}",
        "next": "Run `sqlcmd -L` manually and check that the SQL Server Browser service is running.",
    },
    "no_instances": {
        "what": "No named SQL Server instances were discovered.",
        "next": "Start the SQL Server Browser service or install a named instance, then retry.",
    },
    "not_a_number": {
        "what": "Selection '{value}' is not a number.",
        "next": "Enter the number shown next to the instance, between 1 and {count}.",
    },
    "out_of_range": {
        "what": "Selection {value} is out of range.",
        "next": "Enter a number between 1 and {count}.",
    },
    "run_halted": {
        "what": "Provisioning halted at step '{step}'.",
        "next": "Review the session log at {log_file}, fix the cause and re-run the tool.",
    },
    "unknown_config_keys": {
        "what": "Unknown configuration keys: {keys}",
        "next": "Remove them from the config file. Supported keys: {supported}.",
    },
}


def actionable_error(code: str, **kwargs: str) -> str:
    if code not in _ERROR_MESSAGES:
        raise KeyError(f"Unknown error catalog key: {code}")

    template = _ERROR_MESSAGES[code]
    what = template["what"].format(**kwargs)
    next_step = template["next"].format(**kwargs)
    return f"{what} Suggested action: {next_step}"
