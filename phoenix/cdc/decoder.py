"""Decoding of Debezium-style claim row changes into ClaimChangeEvent."""

import json
from typing import Any, Dict, Optional, Union

from pydantic import ValidationError as PydanticValidationError

from phoenix.core.exceptions import MessageDecodeError
from phoenix.core.providers import AIProvider
from phoenix.schemas.claims import ClaimChangeEvent
from phoenix.utils.logging import get_logger

LOGGER = get_logger(__name__)


def decode_claim_event(raw: Union[str, bytes, None]) -> Optional[ClaimChangeEvent]:
    """Decode one CDC message value.

    The row image is ``payload.after`` when the message has a ``payload``
    envelope, else the root's ``after``.

    Args:
        raw: Message value as received from the transport

    Returns:
        The decoded event, or None for delete events and tombstones

    Raises:
        MessageDecodeError: If the value is not JSON or lacks id/description
    """
    if raw is None:
        return None

    text = raw.decode("utf-8", errors="replace") if isinstance(raw, bytes) else raw
    try:
        root = json.loads(text)
    except json.JSONDecodeError as e:
        raise MessageDecodeError(f"CDC message is not valid JSON: {e}", raw=text, original_error=e)

    if not isinstance(root, dict):
        raise MessageDecodeError("CDC message is not a JSON object", raw=text)

    node = root.get("payload") if "payload" in root else root
    if not isinstance(node, dict):
        return None

    after = node.get("after")
    if after is None:
        return None
    if not isinstance(after, dict):
        raise MessageDecodeError("CDC 'after' image is not an object", raw=text)

    return _event_from_row(after, text)


def _event_from_row(row: Dict[str, Any], raw_text: str) -> ClaimChangeEvent:
    claim_id = row.get("id")
    description = row.get("description")
    if claim_id is None or isinstance(claim_id, bool):
        raise MessageDecodeError("CDC row has no claim id", raw=raw_text)
    if not isinstance(description, str):
        raise MessageDecodeError(f"CDC row for claim {claim_id} has no description", raw=raw_text)

    provider_name = row.get("ai_provider")
    requested_provider = AIProvider.parse(provider_name) if isinstance(provider_name, str) else None
    if provider_name and requested_provider is None:
        LOGGER.warning(
            f"Claim {claim_id} requests unknown AI provider {provider_name!r}, using active provider"
        )

    try:
        return ClaimChangeEvent(
            claim_id=claim_id,
            description=description,
            prior_summary=row.get("summary"),
            requested_provider=requested_provider,
            requested_temperature=_temperature(row.get("ai_temperature"), claim_id),
        )
    except PydanticValidationError as e:
        raise MessageDecodeError(f"CDC row for claim {claim_id} is malformed: {e}", raw=raw_text, original_error=e)


def _temperature(value: Any, claim_id: Any) -> Optional[float]:
    """Per-claim temperature, or None when absent or outside [0, 1]."""
    if value is None or isinstance(value, bool):
        return None
    try:
        temperature = float(value)
    except (TypeError, ValueError):
        LOGGER.warning(f"Claim {claim_id} has non-numeric ai_temperature {value!r}, ignoring")
        return None
    if not 0.0 <= temperature <= 1.0:
        LOGGER.warning(f"Claim {claim_id} has out-of-range ai_temperature {temperature}, ignoring")
        return None
    return temperature
