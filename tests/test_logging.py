"""Tests for credential redaction and JSON formatting in logs."""

import json
import logging

from vaultkeeper.core.logging_config import _JsonFormatter, _SecretFilter, request_id_var
from vaultkeeper.core.token_factory import create_token


def _record(msg, *args, **extra):
    record = logging.LogRecord("vaultkeeper.test", logging.INFO, __file__, 1, msg, args, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestSecretFilter:

    def test_bearer_header_redacted(self):
        record = _record("Authorization: Bearer %s", "a" * 40)
        _SecretFilter().filter(record)
        assert "a" * 40 not in record.getMessage()
        assert "***REDACTED***" in record.getMessage()

    def test_raw_jwt_redacted(self):
        token = create_token("alice", "secret")
        record = _record(f"decoding {token}")
        _SecretFilter().filter(record)
        assert token not in record.getMessage()

    def test_key_value_secrets_redacted(self):
        record = _record("login password=hunter22 totp_secret: JBSWY3DP")
        _SecretFilter().filter(record)
        message = record.getMessage()
        assert "hunter22" not in message
        assert "JBSWY3DP" not in message

    def test_plain_messages_untouched(self):
        record = _record("Vault created %s", "vlt-123")
        _SecretFilter().filter(record)
        assert record.getMessage() == "Vault created vlt-123"


class TestJsonFormatter:

    def test_extra_fields_and_request_id(self):
        token = request_id_var.set("rid-1")
        try:
            line = _JsonFormatter().format(_record("Access denied", vault_id="vlt-1"))
        finally:
            request_id_var.reset(token)
        payload = json.loads(line)
        assert payload["message"] == "Access denied"
        assert payload["vault_id"] == "vlt-1"
        assert payload["request_id"] == "rid-1"
        assert payload["level"] == "INFO"
