from __future__ import annotations

from pathlib import Path

import pytest

from llm_governance import config, logging_utils
from llm_governance.audit.sink import AuditSink
from llm_governance.engine.orchestrator import GovernanceEngine
from llm_governance.policy.models import GovernancePolicy

_GOVERNANCE_ENV = (
    "GOVERNANCE_LOG_DIR",
    "GOVERNANCE_LOG_FILE_NAME",
    "GOVERNANCE_LOG_ENDPOINT",
    "GOVERNANCE_LOG_ENDPOINT_TIMEOUT_SECONDS",
    "GOVERNANCE_POLICY_PATH",
    "GOVERNANCE_PII_REDACTION",
    "GOVERNANCE_BLOCK_HIGH_RISK",
    "GOVERNANCE_REQUIRE_HUMAN_REVIEW",
    "GOVERNANCE_USER_ID",
    "GOVERNANCE_NON_INTERACTIVE_APPROVE",
    "LOG_FILE",
)


@pytest.fixture(autouse=True)
def _isolated_settings(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    # Never read a developer's .env or write into the real home directory.
    monkeypatch.setattr(config, "load_dotenv", lambda **_: None)
    # Root handlers stay as pytest installed them.
    monkeypatch.setattr(logging_utils, "_logging_configured", True)
    for key in _GOVERNANCE_ENV:
        monkeypatch.delenv(key, raising=False)
    monkeypatch.setenv("GOVERNANCE_LOG_DIR", str(tmp_path / "governance_logs"))
    config._load_settings_cached.cache_clear()
    yield
    config._load_settings_cached.cache_clear()


@pytest.fixture
def audit_path(tmp_path: Path) -> Path:
    return tmp_path / "logs" / "audit_trail.jsonl"


@pytest.fixture
def audit_sink(audit_path: Path):
    sink = AuditSink(audit_path)
    yield sink
    sink.close()


@pytest.fixture
def engine_factory(audit_sink: AuditSink):
    def _build(**policy_flags: bool) -> GovernanceEngine:
        return GovernanceEngine(
            GovernancePolicy(**policy_flags),
            audit_sink,
            user_id="tester",
        )

    return _build


@pytest.fixture
def engine(engine_factory) -> GovernanceEngine:
    return engine_factory()
