"""Structured-output parsing of fraud assessments.

Model output is matched against an ordered ladder of parse attempts; the
first one that yields an in-range score wins. Format failures never raise:
after one corrective retry the caller gets a labelled fallback result.
"""

import re
from typing import Awaitable, Callable, List, Optional

from phoenix.schemas.claims import FraudResult
from phoenix.services.enrichment.prompts import build_corrective_prompt
from phoenix.utils.logging import get_logger

LOGGER = get_logger(__name__)

MIN_SCORE = 0
MAX_SCORE = 100
MAX_ATTEMPTS = 2
FALLBACK_ANALYSIS = "AI Analysis unavailable"

ParseAttempt = Callable[[str], Optional[FraudResult]]

_STRICT_PRIMARY = re.compile(
    r"SCORE:\s*(-?\d+).*?ANALYSIS:\s*(.*?)\s*RATIONALE:\s*(.*)",
    re.DOTALL,
)
_STRICT_ALTERNATE = re.compile(
    r"Scoring:\s*(-?\d+).*?Analysis:\s*(.*?)\s*Rational analysis:\s*(.*)",
    re.DOTALL,
)
# A dash followed by whitespace is a separator ("SCORE - 85"); "-5" stays negative
_LENIENT_SCORE = re.compile(r"score[^\w\-]*(?:-\s+)?(?:is[^\w\-]*)?(-?\d+)", re.IGNORECASE)
# Small models sometimes misspell the label as "RAISONALE"
_LENIENT_RATIONALE = re.compile(
    r"RA(?:TIO|ISO)NALE[^\w]*(.*?)(?=\n\s*\d+\.\s|\Z)",
    re.IGNORECASE | re.DOTALL,
)
_FIRST_SENTENCE = re.compile(r".*?\.", re.DOTALL)


def _in_range(score: int) -> bool:
    return MIN_SCORE <= score <= MAX_SCORE


def _from_labelled(pattern: re.Pattern, raw_text: str) -> Optional[FraudResult]:
    match = pattern.search(raw_text)
    if not match:
        return None
    score = int(match.group(1))
    if not _in_range(score):
        return None
    return FraudResult(
        score=score,
        analysis=match.group(2).strip(),
        rationale=match.group(3).strip(),
    )


def parse_strict_primary(raw_text: str) -> Optional[FraudResult]:
    """``SCORE: / ANALYSIS: / RATIONALE:`` with case-sensitive labels."""
    return _from_labelled(_STRICT_PRIMARY, raw_text)


def parse_strict_alternate(raw_text: str) -> Optional[FraudResult]:
    """``Scoring: / Analysis: / Rational analysis:`` variant."""
    return _from_labelled(_STRICT_ALTERNATE, raw_text)


def parse_lenient(raw_text: str) -> Optional[FraudResult]:
    """Pull a score and rationale out of loosely formatted prose.

    The analysis is the rationale's first sentence (the whole rationale when
    it has no period) and empty when no rationale label is present.
    """
    score_match = _LENIENT_SCORE.search(raw_text)
    if not score_match:
        return None
    score = int(score_match.group(1))
    if not _in_range(score):
        return None

    rationale = ""
    analysis = ""
    rationale_match = _LENIENT_RATIONALE.search(raw_text)
    if rationale_match:
        rationale = rationale_match.group(1).strip()
        sentence = _FIRST_SENTENCE.match(rationale)
        analysis = sentence.group(0).strip() if sentence else rationale

    return FraudResult(score=score, analysis=analysis, rationale=rationale)


PARSE_LADDER: List[ParseAttempt] = [
    parse_strict_primary,
    parse_strict_alternate,
    parse_lenient,
]


def parse(raw_text: Optional[str]) -> Optional[FraudResult]:
    """Run the parse ladder over model output.

    Args:
        raw_text: Free-form model response

    Returns:
        The first successful FraudResult, or None when no attempt matched
    """
    if not raw_text:
        return None
    for attempt in PARSE_LADDER:
        result = attempt(raw_text)
        if result is not None:
            LOGGER.debug(f"Fraud output parsed by {attempt.__name__}", extra={"score": result.score})
            return result
    return None


def fallback_result(raw_text: Optional[str]) -> FraudResult:
    return FraudResult(score=0, analysis=FALLBACK_ANALYSIS, rationale=raw_text or "")


async def score_with_retry(
    generate: Callable[[str], Awaitable[str]],
    prompt: str,
) -> FraudResult:
    """Generate a fraud assessment, retrying once with a corrective prompt.

    Args:
        generate: Async callable sending a user prompt to the model
        prompt: Fraud scoring prompt for the first attempt

    Returns:
        Parsed FraudResult, or the fallback result when both attempts fail

    Raises:
        Whatever ``generate`` raises; transport failures are not format failures
    """
    raw_text = await generate(prompt)
    result = parse(raw_text)
    if result is not None:
        return result

    LOGGER.warning(
        "Fraud output did not match any format, retrying with corrective prompt",
        extra={"raw_preview": (raw_text or "")[:200]},
    )
    for _ in range(MAX_ATTEMPTS - 1):
        raw_text = await generate(build_corrective_prompt(prompt, raw_text))
        result = parse(raw_text)
        if result is not None:
            return result

    LOGGER.warning(
        f"Fraud output unparseable after {MAX_ATTEMPTS} attempts, using fallback",
        extra={"raw_preview": (raw_text or "")[:200]},
    )
    return fallback_result(raw_text)
