"""Dual-provider analysis and chat orchestration."""

import logging
import re
from typing import Any, List, Optional, Union

from .config import (
    ASSISTANT_LABEL,
    OPENAI_LABEL,
    CLAUDE_LABEL,
    REFINE_ENABLED,
)
from .merge import merge_analysis, merge_conversation, refine_response
from .models import (
    AggregateFailure,
    AnalysisResult,
    ChatResult,
    ProviderOutcome,
    Success,
    Table,
)
from .prompts import build_analysis_prompt, build_chat_prompt
from .providers import ProviderClient, invoke_both

logger = logging.getLogger(__name__)

_IDENTITY_PATTERNS = [
    r"\bmodel\b",
    r"\bai\b",
    r"who are you",
    r"مۆدڵ",
    r"تۆ کێیت",
]

IDENTITY_SIGNATURE = (
    f"\n\n---\n\n*I am **{ASSISTANT_LABEL}**, powered by {OPENAI_LABEL} and "
    f"{CLAUDE_LABEL} models working together for data analysis and insights generation.*"
)


def asks_about_identity(message: str) -> bool:
    lowered = message.lower()
    return any(re.search(pattern, lowered) for pattern in _IDENTITY_PATTERNS)


def _analysis_payload(outcome: ProviderOutcome) -> Optional[AnalysisResult]:
    if isinstance(outcome, Success) and isinstance(outcome.payload, dict):
        return AnalysisResult.from_payload(outcome.payload)
    return None


def _text_payload(outcome: ProviderOutcome) -> Optional[str]:
    if isinstance(outcome, Success) and isinstance(outcome.payload, str):
        return outcome.payload
    return None


async def analyze_structured(
    tables: List[Table],
    texts: List[str],
    notes: str,
    primary: ProviderClient,
    secondary: ProviderClient,
) -> Union[AnalysisResult, AggregateFailure]:
    """
    Analyze tables and texts with both providers and union their results.

    Returns AggregateFailure when neither provider produced a usable analysis.
    """
    prompt = build_analysis_prompt(tables, texts, notes)
    logger.info("Analyzing with both %s and %s...", primary.name, secondary.name)
    primary_outcome, secondary_outcome = await invoke_both(primary, secondary, prompt)

    result = merge_analysis(
        _analysis_payload(primary_outcome),
        _analysis_payload(secondary_outcome),
        secondary_label=secondary.name,
    )
    if isinstance(result, AnalysisResult):
        logger.info(
            "Merged analysis: %d insights, %d explanations, %d charts",
            len(result.insights),
            len(result.explanations),
            len(result.charts),
        )
    return result


async def chat(
    message: str,
    context: Optional[Any],
    primary: ProviderClient,
    secondary: ProviderClient,
    refine: bool = REFINE_ENABLED,
) -> Union[ChatResult, AggregateFailure]:
    """
    Answer a chat message with both providers and merge the answers.

    The merged answer is optionally refined by the primary provider.
    Refinement problems never fail the request.
    """
    prompt = build_chat_prompt(message, context)
    primary_outcome, secondary_outcome = await invoke_both(primary, secondary, prompt)

    primary_text = _text_payload(primary_outcome)
    secondary_text = _text_payload(secondary_outcome)
    merged = merge_conversation(primary_text, secondary_text, message)
    if isinstance(merged, AggregateFailure):
        return merged

    count = sum(1 for text in (primary_text, secondary_text) if text and text.strip())

    final_message = merged
    if refine:
        logger.info("Refining response with %s...", primary.name)
        final_message = await refine_response(primary, merged, message)

    if asks_about_identity(message):
        final_message += IDENTITY_SIGNATURE

    return ChatResult(message=final_message, count=count, model=ASSISTANT_LABEL)
