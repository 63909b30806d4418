"""Prompt templates for claim summarization and fraud scoring."""

SUMMARY_INSTRUCTION = "Summarize this insurance claim in 1 sentence: "

NO_PRIOR_CLAIMS = "No prior claims found."

FRAUD_SYSTEM_PROMPT = """You are a senior insurance fraud investigator.
Assess the claim below for fraud risk, using the similar historical claims as context.

Respond in EXACTLY this format and nothing else:
SCORE: <integer from 0 to 100>
ANALYSIS: <one or two sentences on the key risk indicators>
RATIONALE: <the reasoning that led to the score>"""

FRAUD_USER_TEMPLATE = """CLAIM:
{claim_text}

SIMILAR HISTORICAL CLAIMS:
{historical_context}"""

CORRECTIVE_TEMPLATE = """{original_prompt}

Your previous answer could not be read:
---
{rejected_output}
---
Answer again using ONLY these three labelled lines, with SCORE an integer between 0 and 100:
SCORE: <integer>
ANALYSIS: <text>
RATIONALE: <text>"""


def build_summary_prompt(redacted_text: str) -> str:
    return SUMMARY_INSTRUCTION + redacted_text


def build_fraud_prompt(claim_text: str, historical_context: str) -> str:
    return FRAUD_USER_TEMPLATE.format(
        claim_text=claim_text,
        historical_context=historical_context or NO_PRIOR_CLAIMS,
    )


def build_corrective_prompt(original_prompt: str, rejected_output: str) -> str:
    return CORRECTIVE_TEMPLATE.format(
        original_prompt=original_prompt,
        rejected_output=rejected_output or "<empty response>",
    )
