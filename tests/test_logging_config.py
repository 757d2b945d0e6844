"""Tests for logging configuration module.

Verifies that logging configuration:
1. Drops key material (BLOCKED_FIELDS)
2. Reduces RPC URLs to scheme and host
3. Redacts calldata and price update payloads
4. Produces valid JSON output
"""

from __future__ import annotations

import io
import json
import logging

import pytest

from perennial_sdk.logging_config import (
    BLOCKED_FIELDS,
    JsonFormatter,
    SimpleFormatter,
    _filter_log_record,
    _normalize_url,
    _sanitize_text,
    get_logger,
    setup_logging,
)


def _record(level: int = logging.INFO, msg: str = "test") -> logging.LogRecord:
    return logging.LogRecord(
        name="test",
        level=level,
        pathname="test.py",
        lineno=10,
        msg=msg,
        args=(),
        exc_info=None,
    )


class TestBlockedFields:
    """Test that key material is never logged."""

    def test_blocked_fields_cover_key_material(self) -> None:
        assert "private_key" in BLOCKED_FIELDS
        assert "mnemonic" in BLOCKED_FIELDS
        assert "signature" in BLOCKED_FIELDS
        assert "api_key" in BLOCKED_FIELDS

    def test_filter_removes_private_key(self) -> None:
        record = {"private_key": "0x" + "ab" * 32, "market": "0xabc"}
        filtered = _filter_log_record(record)
        assert "private_key" not in filtered
        assert "market" in filtered

    def test_filter_removes_partial_matches(self) -> None:
        """Fields containing blocked words should be removed."""
        record = {
            "signer_private_key": "value",
            "wallet_mnemonic": "value",
            "tx_signature": "value",
            "safe_field": "keep",
        }
        filtered = _filter_log_record(record)
        assert "signer_private_key" not in filtered
        assert "wallet_mnemonic" not in filtered
        assert "tx_signature" not in filtered
        assert filtered["safe_field"] == "keep"

    def test_filter_case_insensitive(self) -> None:
        record = {"PRIVATE_KEY": "secret", "Mnemonic": "secret2"}
        filtered = _filter_log_record(record)
        assert filtered == {}


class TestSanitizeText:
    """Tests for _sanitize_text function."""

    def test_rpc_url_path_removed(self) -> None:
        """Provider keys embedded in URL paths must not leak."""
        result = _sanitize_text("Request to https://arb-mainnet.g.alchemy.com/v2/SECRETKEY failed")
        assert "SECRETKEY" not in result
        assert "https://arb-mainnet.g.alchemy.com" in result

    def test_private_key_assignment_redacted(self) -> None:
        result = _sanitize_text("loaded private_key=deadbeef00")
        assert "deadbeef00" not in result
        assert "[SECRET]" in result

    def test_signature_redacted(self) -> None:
        signature = "0x" + "1b" * 65
        result = _sanitize_text(f"signed {signature}")
        assert signature not in result
        assert "[SIGNATURE]" in result

    def test_bearer_token_redacted(self) -> None:
        result = _sanitize_text("Auth: bearer abc123xyz")
        assert "abc123xyz" not in result

    def test_empty_string_unchanged(self) -> None:
        assert _sanitize_text("") == ""

    def test_safe_text_unchanged(self) -> None:
        text = "Price stale, committing update"
        assert _sanitize_text(text) == text


class TestRedactedFields:
    """Test URL normalization and payload redaction."""

    def test_normalize_url_keeps_scheme_and_host(self) -> None:
        assert _normalize_url("https://rpc.example.com/v2/key?x=1") == "https://rpc.example.com"

    def test_normalize_url_keeps_port(self) -> None:
        assert _normalize_url("http://localhost:8545/") == "http://localhost:8545"

    def test_normalize_url_garbage(self) -> None:
        assert _normalize_url("not a url") == "[URL]"

    def test_rpc_url_field_normalized(self) -> None:
        filtered = _filter_log_record({"rpc_url": "https://node.example.org/abcdef"})
        assert filtered["rpc_url"] == "https://node.example.org"

    def test_calldata_redacted(self) -> None:
        filtered = _filter_log_record({"data": "0x1234", "calldata": b"\x01\x02"})
        assert filtered["data"] == "[CALLDATA]"
        assert filtered["calldata"] == "[CALLDATA]"

    def test_update_data_redacted(self) -> None:
        filtered = _filter_log_record({"update_data": b"\x00" * 100})
        assert filtered["update_data"] == "[UPDATE_DATA]"

    def test_bytes_summarized(self) -> None:
        filtered = _filter_log_record({"raw": b"\x00" * 7})
        assert filtered["raw"] == "[bytes:7]"


class TestFilterLogRecord:
    """Test the _filter_log_record function."""

    def test_safe_fields_preserved(self) -> None:
        record = {"market": "0xabc", "count": 42, "ratio": 0.5, "enabled": True, "version": None}
        filtered = _filter_log_record(record)
        assert filtered == record

    def test_list_capped_at_10(self) -> None:
        filtered = _filter_log_record({"actions": list(range(15))})
        assert filtered["actions"] == "[list:15 items]"

    def test_small_list_preserved(self) -> None:
        filtered = _filter_log_record({"actions": ["commit_price", "update_market"]})
        assert filtered["actions"] == ["commit_price", "update_market"]

    def test_nested_dict_filtered(self) -> None:
        record = {"signer": {"address": "0xabc", "private_key": "secret"}}
        filtered = _filter_log_record(record)
        assert filtered["signer"] == {"address": "0xabc"}


class TestJsonFormatter:
    """Test the JSON log formatter."""

    def test_produces_valid_json(self) -> None:
        parsed = json.loads(JsonFormatter().format(_record(msg="hello world")))
        assert parsed["level"] == "INFO"
        assert parsed["logger"] == "test"
        assert parsed["msg"] == "hello world"
        assert "ts" in parsed

    def test_warning_includes_location(self) -> None:
        parsed = json.loads(JsonFormatter().format(_record(level=logging.WARNING)))
        assert parsed["file"] == "test.py"
        assert parsed["line"] == 10

    def test_extra_fields_filtered(self) -> None:
        record = _record()
        record.private_key = "secret123"
        record.market = "0xabc"
        record.data = "0xdeadbeef"
        parsed = json.loads(JsonFormatter().format(record))
        assert "private_key" not in parsed
        assert parsed["market"] == "0xabc"
        assert parsed["data"] == "[CALLDATA]"


class TestSimpleFormatter:
    """Test the simple human-readable formatter."""

    def test_basic_format(self) -> None:
        output = SimpleFormatter().format(_record(msg="hello"))
        assert "INFO" in output
        assert "hello" in output

    def test_extra_fields_appended(self) -> None:
        record = _record()
        record.kind = "cancel_order"
        assert "kind=cancel_order" in SimpleFormatter().format(record)


class TestSetupLogging:
    """Test the setup_logging function."""

    def test_setup_logging_json(self) -> None:
        stream = io.StringIO()
        setup_logging(json_format=True, stream=stream)

        get_logger("test_json").info("test message", extra={"market": "0xabc"})

        parsed = json.loads(stream.getvalue().strip())
        assert parsed["msg"] == "test message"
        assert parsed["market"] == "0xabc"

    def test_setup_logging_simple(self) -> None:
        stream = io.StringIO()
        setup_logging(json_format=False, stream=stream)

        get_logger("test_simple").info("simple test")

        output = stream.getvalue()
        assert "simple test" in output
        with pytest.raises(json.JSONDecodeError):
            json.loads(output.strip())

    def test_setup_logging_level(self) -> None:
        stream = io.StringIO()
        setup_logging(level=logging.WARNING, json_format=False, stream=stream)

        logger = get_logger("test_level")
        logger.info("info message")
        logger.warning("warning message")

        output = stream.getvalue()
        assert "info message" not in output
        assert "warning message" in output
