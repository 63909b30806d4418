"""PII governance applied before claim text leaves the service."""

from phoenix.services.governance.redactor import REDACTION_RULES, RedactionRule, redact

__all__ = [
    "REDACTION_RULES",
    "RedactionRule",
    "redact",
]
