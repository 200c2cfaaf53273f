from __future__ import annotations

from llm_governance.classification.classifier import RiskClassifier
from llm_governance.domain.messages import Part
from llm_governance.domain.risk import RiskLevel
from llm_governance.policy.models import RiskRuleConfig


def _classify(*texts: str):
    return RiskClassifier().classify([Part(text=t) for t in texts])


def test_hr_decision() -> None:
    result = _classify("I need to fire an employee")
    assert (result.level, result.category) == (RiskLevel.HIGH, "HR Decision")


def test_general_low() -> None:
    result = _classify("hello world")
    assert (result.level, result.category) == (RiskLevel.LOW, "General")
    assert result.matched_keyword is None


def test_matching_is_case_insensitive() -> None:
    result = _classify("Please give me FINANCIAL ADVICE")
    assert result.category == "Financial Advice"
    assert result.matched_keyword == "financial advice"


def test_first_rule_wins() -> None:
    # Mentions both medical and confidential; proprietary rule is evaluated first.
    result = _classify("summarize this confidential medical report")
    assert result.category == "Proprietary Information"


def test_fragments_are_joined_with_spaces() -> None:
    # "fire" and "employee" in separate fragments still form "fire employee".
    result = _classify("we must fire", "employee 42 today")
    assert result.category == "HR Decision"


def test_non_text_fragments_ignored() -> None:
    classifier = RiskClassifier()
    result = classifier.classify([Part(payload={"fileUri": "gs://secret/stock.csv"})])
    assert result.level is RiskLevel.LOW


def test_medical_advice() -> None:
    assert _classify("what is the diagnosis for these symptoms").category == "Medical Advice"


def test_extra_rule_with_custom_level() -> None:
    classifier = RiskClassifier.with_extra_rules(
        [RiskRuleConfig(category="Legal Advice", keywords=["Lawsuit"], level=RiskLevel.MEDIUM)]
    )
    result = classifier.classify([Part(text="Draft a lawsuit response")])
    assert (result.level, result.category) == (RiskLevel.MEDIUM, "Legal Advice")
