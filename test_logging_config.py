"""Verification of structlog wiring onto the root logger."""
import logging

import pytest
import structlog

from ghostflags.core.config import Settings
from ghostflags.core.logging_config import REDACTED, configure_logging, redact_sensitive


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield root
    root.handlers = handlers
    root.setLevel(level)
    structlog.reset_defaults()


@pytest.mark.parametrize("environment", ["development", "production"])
def test_configure_logging_routes_through_structlog(restore_root_logger, environment):
    settings = Settings(_env_file=None, ENVIRONMENT=environment, LOG_LEVEL="warning")

    configure_logging(settings)

    root = restore_root_logger
    assert len(root.handlers) == 1
    assert isinstance(root.handlers[0].formatter, structlog.stdlib.ProcessorFormatter)
    assert root.level == logging.WARNING
    assert logging.getLogger("dns").level == logging.WARNING


def test_redact_sensitive_masks_key_material():
    event = {"event": "loaded", "secret": "4a6f", "Envelope": "QUJD", "fqdn": "flags.example.com"}

    redacted = redact_sensitive(None, "info", event)

    assert redacted["secret"] == REDACTED
    assert redacted["Envelope"] == REDACTED
    assert redacted["fqdn"] == "flags.example.com"


def test_redact_sensitive_shortens_user_ids():
    assert redact_sensitive(None, "info", {"user_id": "user-1234567890"})["user_id"] == "user-123..."
    assert redact_sensitive(None, "info", {"user_id": "user-5"})["user_id"] == "user-5"


def test_stdlib_records_are_redacted(restore_root_logger, capsys):
    configure_logging(Settings(_env_file=None, ENVIRONMENT="production", LOG_LEVEL="info"))

    logging.getLogger("ghostflags.test").info("key loaded", extra={"secret": "4a6f1c2e"})

    err = capsys.readouterr().err
    assert "key loaded" in err
    assert REDACTED in err
    assert "4a6f1c2e" not in err
