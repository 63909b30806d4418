"""PII redaction applied to claim text before it leaves the service.

Rules run in order over the output of the previous rule. Replacement tokens
are bracketed words, so no later pattern can match inside them.
"""

import re
from dataclasses import dataclass
from typing import List, Optional, Pattern

from opentelemetry import trace

from phoenix.utils.logging import get_logger

LOGGER = get_logger(__name__)

PII_DETECTED_ATTRIBUTE = "governance.pii_detected"


@dataclass(frozen=True)
class RedactionRule:
    name: str
    pattern: Pattern[str]
    replacement: str


REDACTION_RULES: List[RedactionRule] = [
    RedactionRule(
        name="ssn",
        pattern=re.compile(r"\b\d{3}-\d{2}-\d{4}\b|\b\d{9}\b"),
        replacement="[REDACTED_SSN]",
    ),
    RedactionRule(
        name="email",
        pattern=re.compile(r"[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,6}"),
        replacement="[REDACTED_EMAIL]",
    ),
    RedactionRule(
        name="policy_id",
        pattern=re.compile(r"\b(POL|POLICY)-\d{4,10}\b", re.IGNORECASE),
        replacement="[REDACTED_POLICY_ID]",
    ),
]


def redact(text: Optional[str], rules: Optional[List[RedactionRule]] = None) -> Optional[str]:
    """Replace SSNs, email addresses and policy ids with fixed tokens.

    Args:
        text: Raw claim text; None and "" are returned unchanged
        rules: Rule list override (defaults to REDACTION_RULES)

    Returns:
        The sanitized text
    """
    if not text:
        return text

    fired: List[str] = []
    result = text
    for rule in rules or REDACTION_RULES:
        result, count = rule.pattern.subn(rule.replacement, result)
        if count:
            fired.append(rule.name)

    if fired:
        _signal_detection(fired)

    return result


def _signal_detection(rule_names: List[str]) -> None:
    LOGGER.info(
        "Governance: PII detected and redacted",
        extra={"rules": rule_names},
    )
    span = trace.get_current_span()
    span.set_attribute(PII_DETECTED_ATTRIBUTE, True)
