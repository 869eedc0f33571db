import pytest

from sageprovisioner.errors_catalog import actionable_error


def test_actionable_error_formats_message_with_suggested_action():
    message = actionable_error("run_halted", step="create_login", log_file="logs/run.log")

    assert "Provisioning halted at step 'create_login'." in message
    assert "Suggested action:" in message
    assert "logs/run.log" in message


def test_actionable_error_rejects_unknown_code():
    with pytest.raises(KeyError):
        actionable_error("does_not_exist")
