"""Tests for structured logging."""

import json
import logging

from geodrop.utils.logger import REDACTED, JSONFormatter, get_logger, redact


def test_redact_masks_nested_secrets():
    data = {"dropId": "d1", "secret": "open sesame", "meta": {"token": "abc", "tier": "pro"}}
    assert redact(data) == {"dropId": "d1", "secret": REDACTED, "meta": {"token": REDACTED, "tier": "pro"}}
    assert data["secret"] == "open sesame"


def test_formatter_emits_static_fields_and_masked_extra():
    formatter = JSONFormatter({"service": "GeoDrop"})
    record = logging.LogRecord("geodrop.test", logging.INFO, __file__, 10, "unlocked", None, None)
    record.extra_data = {"dropId": "d1", "secretHash": "deadbeef"}

    payload = json.loads(formatter.format(record))

    assert payload["message"] == "unlocked"
    assert payload["service"] == "GeoDrop"
    assert payload["dropId"] == "d1"
    assert payload["secretHash"] == REDACTED


def test_module_loggers_hang_off_service_root():
    assert get_logger("services.unlock").name == "geodrop.services.unlock"
    assert get_logger("geodrop.services.unlock").name == "geodrop.services.unlock"
