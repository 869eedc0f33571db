import logging

import pytest

from sageprovisioner.services.secret import OpaqueSecret, SecretRedactionFilter, collect_secret


def test_opaque_secret_reveals_value_but_masks_repr():
    secret = OpaqueSecret("S3cret!")

    assert secret.reveal() == "S3cret!"
    assert "S3cret!" not in repr(secret)
    assert "S3cret!" not in str(secret)
    assert "S3cret!" not in f"{secret}"


def test_opaque_secret_rejects_empty_value():
    with pytest.raises(ValueError):
        OpaqueSecret("")


def test_collect_secret_uses_hidden_input():
    captured = {}

    def fake_prompt(text, **kwargs):
        captured.update(kwargs, text=text)
        return "pw"

    secret = collect_secret("Password", prompt_func=fake_prompt)

    assert secret.reveal() == "pw"
    assert captured["hide_input"] is True
    assert captured["confirmation_prompt"] is True


def test_redaction_filter_masks_secret_in_records():
    secret = OpaqueSecret("S3cret!")
    record = logging.LogRecord(
        "sageprovisioner", logging.ERROR, __file__, 1, "failed with %s", ("S3cret!",), None
    )

    assert SecretRedactionFilter(secret).filter(record) is True
    assert record.getMessage() == "failed with ****"


def test_redaction_filter_leaves_other_records_untouched():
    secret = OpaqueSecret("S3cret!")
    record = logging.LogRecord(
        "sageprovisioner", logging.INFO, __file__, 1, "Step '%s' completed.", ("create_login",), None
    )

    SecretRedactionFilter(secret).filter(record)

    assert record.args == ("create_login",)
    assert record.getMessage() == "Step 'create_login' completed."


def test_redaction_filter_passes_malformed_records_through():
    secret = OpaqueSecret("S3cret!")
    record = logging.LogRecord(
        "sageprovisioner", logging.INFO, __file__, 1, "Step %s and %s", ("create_login",), None
    )

    assert SecretRedactionFilter(secret).filter(record) is True
    assert record.msg == "Step %s and %s"
    assert record.args == ("create_login",)
