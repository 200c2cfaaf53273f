"""Operator CLI: risk assessment report, audit trail inspection, dry-run scan."""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime

import click

from llm_governance import __version__
from llm_governance.app import build_redactor, load_policy_config
from llm_governance.audit.reader import count_entries, tail_entries
from llm_governance.classification.classifier import RiskClassifier
from llm_governance.config import Settings, load_settings
from llm_governance.domain.messages import Part, message_text
from llm_governance.logging_utils import configure_logging

# Redaction kinds an enterprise deployment is expected to carry.
REQUIRED_REDACTION_KINDS = {
    "employee_id": "Employee ID",
    "project_codeword": "Project Codeword",
    "credit_card": "Credit Card",
}

_RULE = "=" * 57


def _settings_or_exit() -> Settings:
    try:
        return load_settings()
    except RuntimeError as exc:
        click.echo(f"Configuration error: {exc}", err=True)
        sys.exit(1)


def _status(label: str, message: str) -> None:
    click.echo(f"   [{label}] {message}")


@click.group()
@click.version_option(__version__, prog_name="llm-governance")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
def main(verbose: bool) -> None:
    """Governance layer for LLM requests: assessment and audit tooling."""
    _settings_or_exit()
    configure_logging()
    if verbose:
        logging.getLogger().setLevel(logging.DEBUG)


@main.command()
def assess() -> None:
    """Run the AI risk assessment checks against the active configuration."""
    settings = _settings_or_exit()
    failures = 0

    click.echo(_RULE)
    click.echo("      AI Risk Assessment")
    click.echo(_RULE)
    click.echo(f"Date: {datetime.now().isoformat(timespec='seconds')}")
    click.echo("")

    click.echo("[1] Governance Layer Availability")
    try:
        policy_config = load_policy_config(settings)
        redactor = build_redactor(policy_config)
    except (OSError, ValueError) as exc:
        _status("FAIL", f"Policy could not be loaded: {exc}")
        sys.exit(1)
    source = settings.policy.path or "built-in defaults"
    _status("PASS", f"Governance policy loaded from {source}.")

    click.echo("[2] Sensitive Data Redaction (DLP) Configuration")
    _status("INFO", f"Redaction kinds: {', '.join(redactor.kinds)}")
    for kind, label in REQUIRED_REDACTION_KINDS.items():
        if kind in redactor.kinds:
            _status("PASS", f"{label} redaction configured.")
        else:
            _status("FAIL", f"{label} redaction missing.")
            failures += 1
    if not policy_config.defaults.pii_redaction_enabled:
        _status("FAIL", "PII redaction is disabled by policy.")
        failures += 1

    click.echo("[3] Audit & Traceability")
    if settings.audit.endpoint:
        _status("PASS", "SIEM integration (HTTP export) configured.")
    else:
        _status("WARN", "No GOVERNANCE_LOG_ENDPOINT configured; audit trail is local only.")

    audit_path = settings.audit.path
    if audit_path.exists():
        _status("PASS", f"Audit log file exists ({count_entries(audit_path)} entries).")
    elif audit_path.parent.exists():
        _status("WARN", "Audit log directory exists but the log file is missing.")
    else:
        _status("WARN", "Audit log directory does not exist yet (created on first run).")

    click.echo("[4] Human-in-the-Loop (HITL) Controls")
    policy = policy_config.defaults
    if policy.block_high_risk:
        _status("PASS", "High Risk requests are blocked outright.")
    elif policy.require_human_review_for_high_risk:
        _status("PASS", "High Risk requests require human approval.")
    else:
        _status("FAIL", "High Risk requests proceed without review.")
        failures += 1

    click.echo("")
    click.echo(_RULE)
    click.echo("Assessment Complete.")
    if failures:
        sys.exit(1)


@main.group()
def audit() -> None:
    """Inspect the local audit trail."""


@audit.command("tail")
@click.option("--lines", "-n", default=10, show_default=True, type=click.IntRange(min=1))
def audit_tail(lines: int) -> None:
    """Print the most recent audit entries as JSON lines."""
    settings = _settings_or_exit()
    for record in tail_entries(settings.audit.path, lines):
        click.echo(json.dumps(record, ensure_ascii=False))


@main.command()
@click.argument("text")
def scan(text: str) -> None:
    """Show how TEXT would be redacted and classified. Writes no audit entry."""
    settings = _settings_or_exit()
    try:
        policy_config = load_policy_config(settings)
    except (OSError, ValueError) as exc:
        click.echo(f"Policy error: {exc}", err=True)
        sys.exit(1)

    message = [Part(text=text)]
    if policy_config.defaults.pii_redaction_enabled:
        result = build_redactor(policy_config).redact(message)
        message = result.message
        reasons = ", ".join(result.reasons) or "none"
    else:
        reasons = "redaction disabled"

    classification = RiskClassifier.with_extra_rules(policy_config.risk_rules).classify(message)
    click.echo(f"Redacted: {message_text(message)}")
    click.echo(f"Redaction reasons: {reasons}")
    click.echo(f"Risk level: {classification.level.value}")
    click.echo(f"Risk category: {classification.category}")
    if classification.matched_keyword:
        click.echo(f"Matched keyword: {classification.matched_keyword}")


if __name__ == "__main__":  # pragma: no cover
    main()
