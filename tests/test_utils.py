import enum
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from llm_governance.domain.risk import RiskLevel
from llm_governance.utils.masking import (
    is_sensitive_key,
    redact_sensitive_fields,
    sanitize_log_value,
)
from llm_governance.utils.regex_safety import compile_safe_pattern, validate_pattern_safety
from llm_governance.utils.serialization import json_default
from llm_governance.utils.time import to_iso


def test_json_default():
    class Color(enum.Enum):
        RED = "red"

    @dataclass
    class Point:
        x: int

    class HasToDict:
        def to_dict(self):
            return {"k": 1}

    assert json_default(Color.RED) == "red"
    assert json_default(RiskLevel.HIGH) == "HIGH"
    assert json_default(datetime(2024, 1, 1, tzinfo=timezone.utc)) == "2024-01-01T00:00:00+00:00"
    assert json_default(Decimal("10")) == 10
    assert json_default(Decimal("1.5")) == 1.5
    assert json_default(b"abc") == "abc"
    assert json_default(b"\xff") == "/w=="
    assert json_default(HasToDict()) == {"k": 1}
    assert json_default(Point(3)) == {"x": 3}
    assert json_default({1, 2}) in ([1, 2], [2, 1])
    assert json_default(object()).startswith("<object object")


def test_to_iso_normalizes_to_utc():
    naive = datetime(2024, 5, 6, 7, 8, 9)
    assert to_iso(naive) == "2024-05-06T07:08:09+00:00"

    offset = datetime(2024, 5, 6, 9, 8, 9, tzinfo=timezone(timedelta(hours=2)))
    assert to_iso(offset) == "2024-05-06T07:08:09+00:00"


def test_is_sensitive_key():
    assert is_sensitive_key("api_key")
    assert is_sensitive_key("X-Authorization")
    assert is_sensitive_key("refreshToken")
    assert is_sensitive_key("x-api-key")
    assert is_sensitive_key("APIKey")
    assert is_sensitive_key("accessKeyId")
    assert is_sensitive_key("client_secret")
    assert not is_sensitive_key("temperature")
    assert not is_sensitive_key("maxOutputTokens")
    assert not is_sensitive_key("max_tokens")
    assert not is_sensitive_key("tokenizer")
    assert not is_sensitive_key("keyword")


def test_redact_sensitive_fields_nested():
    params = {
        "temperature": 0.3,
        "headers": {"Authorization": "Bearer x", "Accept": "json"},
        "tools": [{"name": "search", "secret_value": "s"}],
    }
    assert redact_sensitive_fields(params) == {
        "temperature": 0.3,
        "headers": {"Authorization": "***", "Accept": "json"},
        "tools": [{"name": "search", "secret_value": "***"}],
    }
    # Input is not mutated.
    assert params["headers"]["Authorization"] == "Bearer x"


def test_redact_sensitive_fields_depth_limit():
    assert redact_sensitive_fields({"a": {"b": 1}}, max_depth=1) == {"a": "***"}


def test_sanitize_log_value():
    assert sanitize_log_value("alice\nFAKE_ENTRY") == "alice_FAKE_ENTRY"
    assert sanitize_log_value("tab\tkept") == "tab\tkept"


@pytest.mark.parametrize(
    "pattern",
    [
        r"(a+)+",
        r"(\d*)*x",
        r"(a|b)\1",
        r"(?<=foo)bar",
        "a" * 300,
    ],
)
def test_validate_pattern_safety_rejects(pattern):
    with pytest.raises(ValueError, match="Unsafe regex"):
        validate_pattern_safety(pattern, "redaction")


def test_compile_safe_pattern():
    assert compile_safe_pattern(r"\bACCT-\d{6}\b", "redaction").search("ACCT-123456")
    with pytest.raises(ValueError, match="Invalid regex"):
        compile_safe_pattern("[unclosed", "redaction")
