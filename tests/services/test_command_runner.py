import sys

import pytest

from sageprovisioner.errors import CommandNotFoundError, ProvisionerError
from sageprovisioner.services.command_runner import CommandRunner, powershell_literal, single_line


class DummyLogger:
    def __init__(self):
        self.messages = []

    def debug(self, message, *args, **_kwargs):
        self.messages.append(message % args if args else message)


def test_command_runner_raises_with_stderr():
    runner = CommandRunner(logger=DummyLogger())

    with pytest.raises(ProvisionerError, match="boom"):
        runner.run(
            [sys.executable, "-c", "import sys; sys.stderr.write('boom'); sys.exit(1)"],
            check=True,
            capture_output=True,
        )


def test_command_runner_returns_when_check_disabled():
    runner = CommandRunner(logger=DummyLogger())

    result = runner.run(
        [sys.executable, "-c", "import sys; sys.exit(1)"],
        check=False,
        capture_output=True,
    )

    assert result.returncode == 1


def test_command_runner_feeds_input_on_stdin_without_logging_it():
    logger = DummyLogger()
    runner = CommandRunner(logger=logger)

    result = runner.run(
        [sys.executable, "-c", "import sys; print(sys.stdin.read().upper())"],
        capture_output=True,
        input_text="hunter2",
    )

    assert "HUNTER2" in result.stdout
    assert not any("hunter2" in message for message in logger.messages)


def test_command_runner_reports_missing_command():
    runner = CommandRunner(logger=DummyLogger())

    with pytest.raises(CommandNotFoundError, match="Required command not found") as exc_info:
        runner.run(["definitely-not-installed-sageprovisioner-tool"], capture_output=True)

    assert exc_info.value.command == "definitely-not-installed-sageprovisioner-tool"


def test_run_powershell_passes_script_on_stdin(monkeypatch):
    runner = CommandRunner(logger=DummyLogger())
    captured = {}

    def fake_run(cmd, check=True, capture_output=False, input_text=None):
        captured.update(cmd=cmd, input_text=input_text, capture_output=capture_output)
        return None

    monkeypatch.setattr(runner, "run", fake_run)

    runner.run_powershell("Get-Service")

    assert captured["cmd"][0] == "powershell.exe"
    assert captured["cmd"][-2:] == ["-Command", "-"]
    assert captured["input_text"] == "Get-Service"
    assert captured["capture_output"] is True


def test_powershell_literal_escapes_single_quotes():
    assert powershell_literal("O'Brien") == "'O''Brien'"


def test_command_failure_message_stays_on_one_line():
    logger = DummyLogger()
    runner = CommandRunner(logger=logger)
    script = "import sys; sys.stderr.write('first\\n\\nsecond\\n'); sys.exit(2)"

    with pytest.raises(ProvisionerError) as exc_info:
        runner.run([sys.executable, "-c", script], check=True, capture_output=True)

    assert "\n" not in str(exc_info.value)
    assert str(exc_info.value).endswith(": first | second")

    runner.run([sys.executable, "-c", script], check=False, capture_output=True)
    assert all("\n" not in message for message in logger.messages)


def test_single_line_folds_blank_and_padded_lines():
    assert single_line("  Error: 50\r\n\r\n  The operation failed.\n") == "Error: 50 | The operation failed."
