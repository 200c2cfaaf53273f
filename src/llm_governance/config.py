"""Configuration management for the governance layer."""

from __future__ import annotations

import getpass
import logging
import os
from functools import lru_cache
from pathlib import Path

from dotenv import load_dotenv
from pydantic import BaseModel, Field, ValidationError

_config_logger = logging.getLogger(__name__)

DEFAULT_LOG_DIR = "~/.llm_governance/governance_logs"


class LoggingSettings(BaseModel):
    level: str = Field(default="INFO", description="Python logging level name")
    file: str | None = Field(default=None, description="Optional log file path")


class AuditSettings(BaseModel):
    log_dir: str = Field(default=DEFAULT_LOG_DIR)
    file_name: str = Field(default="audit_trail.jsonl", min_length=1)
    endpoint: str | None = Field(
        default=None,
        description="Optional collector URL every audit entry is also POSTed to.",
    )
    endpoint_timeout_seconds: float = Field(default=5.0, ge=0.1, le=60.0)

    @property
    def path(self) -> Path:
        return Path(self.log_dir).expanduser() / self.file_name


class PolicySettings(BaseModel):
    path: str | None = Field(default=None, description="Optional policy.yaml path")
    # None means "use the policy file / built-in default".
    pii_redaction_enabled: bool | None = Field(default=None)
    block_high_risk: bool | None = Field(default=None)
    require_human_review_for_high_risk: bool | None = Field(default=None)


class IdentitySettings(BaseModel):
    user_id: str = Field(default="unknown_user", min_length=1)


class ApprovalSettings(BaseModel):
    non_interactive_default: bool = Field(
        default=False,
        description="Answer given on behalf of the user when no terminal is attached.",
    )


class Settings(BaseModel):
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    audit: AuditSettings = Field(default_factory=AuditSettings)
    policy: PolicySettings = Field(default_factory=PolicySettings)
    identity: IdentitySettings = Field(default_factory=IdentitySettings)
    approval: ApprovalSettings = Field(default_factory=ApprovalSettings)


ENV_KEYS = {
    "log_level": "LOG_LEVEL",
    "log_file": "LOG_FILE",
    "audit_dir": "GOVERNANCE_LOG_DIR",
    "audit_file_name": "GOVERNANCE_LOG_FILE_NAME",
    "audit_endpoint": "GOVERNANCE_LOG_ENDPOINT",
    "audit_endpoint_timeout": "GOVERNANCE_LOG_ENDPOINT_TIMEOUT_SECONDS",
    "policy_path": "GOVERNANCE_POLICY_PATH",
    "pii_redaction": "GOVERNANCE_PII_REDACTION",
    "block_high_risk": "GOVERNANCE_BLOCK_HIGH_RISK",
    "require_human_review": "GOVERNANCE_REQUIRE_HUMAN_REVIEW",
    "user_id": "GOVERNANCE_USER_ID",
    "non_interactive_approve": "GOVERNANCE_NON_INTERACTIVE_APPROVE",
}

_TRUE_VALUES = frozenset({"1", "true", "yes", "on"})
_FALSE_VALUES = frozenset({"0", "false", "no", "off"})


def _expand_path(path: str) -> str:
    return str(Path(path).expanduser())


def _env_str(key: str) -> str | None:
    value = os.getenv(key)
    if value is None or value.strip() == "":
        return None
    return value.strip()


def _env_bool(key: str, default: bool) -> bool:
    value = os.getenv(key)
    if value is None:
        return default
    return value.strip().lower() in _TRUE_VALUES


def _env_optional_bool(key: str) -> bool | None:
    value = _env_str(key)
    if value is None:
        return None
    lowered = value.lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    _config_logger.warning("Invalid boolean value for %s: %r, ignoring", key, value)
    return None


def _env_float(key: str, default: float) -> float:
    value = os.getenv(key)
    if value is None or value.strip() == "":
        return default
    try:
        return float(value)
    except ValueError:
        _config_logger.warning(
            "Invalid float value for %s: %r, using default %s", key, value, default
        )
        return default


def _default_user_id() -> str:
    explicit = _env_str(ENV_KEYS["user_id"])
    if explicit:
        return explicit
    for key in ("USER", "USERNAME"):
        value = _env_str(key)
        if value:
            return value
    try:
        return getpass.getuser()
    except (KeyError, OSError):
        return IdentitySettings().user_id


def load_settings() -> Settings:
    """Load configuration and cache the result."""

    return _load_settings_cached()


@lru_cache(maxsize=1)
def _load_settings_cached() -> Settings:
    load_dotenv(dotenv_path=Path.cwd() / ".env")
    log_file_env = _env_str(ENV_KEYS["log_file"])
    policy_path_env = _env_str(ENV_KEYS["policy_path"])

    settings_data: dict[str, object] = {
        "logging": {
            "level": os.getenv(ENV_KEYS["log_level"], LoggingSettings().level),
            "file": _expand_path(log_file_env) if log_file_env else None,
        },
        "audit": {
            "log_dir": _expand_path(_env_str(ENV_KEYS["audit_dir"]) or AuditSettings().log_dir),
            "file_name": _env_str(ENV_KEYS["audit_file_name"]) or AuditSettings().file_name,
            "endpoint": _env_str(ENV_KEYS["audit_endpoint"]),
            "endpoint_timeout_seconds": _env_float(
                ENV_KEYS["audit_endpoint_timeout"],
                AuditSettings().endpoint_timeout_seconds,
            ),
        },
        "policy": {
            "path": _expand_path(policy_path_env) if policy_path_env else None,
            "pii_redaction_enabled": _env_optional_bool(ENV_KEYS["pii_redaction"]),
            "block_high_risk": _env_optional_bool(ENV_KEYS["block_high_risk"]),
            "require_human_review_for_high_risk": _env_optional_bool(
                ENV_KEYS["require_human_review"]
            ),
        },
        "identity": {
            "user_id": _default_user_id(),
        },
        "approval": {
            "non_interactive_default": _env_bool(
                ENV_KEYS["non_interactive_approve"],
                ApprovalSettings().non_interactive_default,
            ),
        },
    }

    try:
        settings = Settings.model_validate(settings_data)
    except ValidationError as exc:
        raise RuntimeError(f"Invalid configuration: {exc}") from exc

    if "/" in settings.audit.file_name or "\\" in settings.audit.file_name:
        raise RuntimeError(
            "Invalid configuration: GOVERNANCE_LOG_FILE_NAME must be a bare file name"
        )

    return settings
