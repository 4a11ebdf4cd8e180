"""Reconciliation of two provider answers into one result."""

import logging
import re
from enum import Enum
from typing import Optional, Union

from .config import LENGTH_PREFERENCE_RATIO, REFINE_MIN_LENGTH, CLAUDE_LABEL
from .models import AggregateFailure, AnalysisResult, Success
from .prompts import build_refine_prompt
from .providers import ProviderClient, describe_outcome

logger = logging.getLogger(__name__)

_ARABIC_SCRIPT = re.compile(r"[\u0600-\u06FF]")
# Letters of Sorani Kurdish that Arabic does not use.
_KURDISH_ONLY = re.compile(r"[ێۆڕڵە]")
_LATIN = re.compile(r"[a-zA-Z]")


class Language(str, Enum):
    KURDISH = "kurdish"
    ARABIC = "arabic"
    ENGLISH = "english"
    UNKNOWN = "unknown"


def detect_language(text: str) -> Language:
    """Classify text by script: Kurdish, Arabic, English or unknown."""
    if not text:
        return Language.UNKNOWN
    if _ARABIC_SCRIPT.search(text):
        if _KURDISH_ONLY.search(text):
            return Language.KURDISH
        return Language.ARABIC
    if _LATIN.search(text):
        return Language.ENGLISH
    return Language.UNKNOWN


def merge_analysis(
    primary: Optional[AnalysisResult],
    secondary: Optional[AnalysisResult],
    secondary_label: str = CLAUDE_LABEL,
) -> Union[AnalysisResult, AggregateFailure]:
    """
    Union two analysis results, primary first.

    Nothing is deduplicated or reordered: every insight, explanation and chart
    of both results appears in the output. The secondary summary is appended
    as an attributed paragraph, or used as is when there is no primary summary.
    """
    if primary is None and secondary is None:
        return AggregateFailure("Both AI services failed")

    merged = AnalysisResult()
    if primary is not None:
        merged = primary.model_copy(deep=True)

    if secondary is not None:
        if secondary.summary:
            if merged.summary:
                merged.summary = f"{merged.summary}\n\n**{secondary_label}'s Perspective:** {secondary.summary}"
            else:
                merged.summary = secondary.summary
        merged.insights = merged.insights + list(secondary.insights)
        merged.explanations = merged.explanations + list(secondary.explanations)
        merged.charts = merged.charts + [chart.model_copy(deep=True) for chart in secondary.charts]

    return merged


def _join(first: str, second: str) -> str:
    return f"{first}\n\n{second}"


def merge_conversation(
    primary: Optional[str],
    secondary: Optional[str],
    user_message: str,
) -> Union[str, AggregateFailure]:
    """Combine up to two free-text answers into one reply in the user's language."""
    answers = [answer for answer in (primary, secondary) if answer and answer.strip()]
    if not answers:
        return AggregateFailure("All AI services failed")
    if len(answers) == 1:
        return answers[0]

    first, second = answers
    first_lang = detect_language(first)
    second_lang = detect_language(second)

    if first_lang == second_lang and first_lang != Language.UNKNOWN:
        if len(first) > len(second) * LENGTH_PREFERENCE_RATIO:
            return first
        if len(second) > len(first) * LENGTH_PREFERENCE_RATIO:
            return second
        return _join(first, second)

    user_lang = detect_language(user_message)
    if user_lang != Language.UNKNOWN:
        if first_lang == user_lang:
            return first
        if second_lang == user_lang:
            return second
    return _join(first, second)


async def refine_response(client: ProviderClient, merged_text: str, original_question: str) -> str:
    """
    Ask one provider to rewrite the merged text in a single voice.

    Falls back to the merged text when the call does not succeed or the
    refined text is too short to be a real answer.
    """
    outcome = await client.complete(build_refine_prompt(merged_text, original_question))
    if not isinstance(outcome, Success) or not isinstance(outcome.payload, str):
        logger.info("Refinement skipped: %s", describe_outcome(outcome))
        return merged_text

    refined = outcome.payload
    if len(refined.strip()) <= REFINE_MIN_LENGTH:
        logger.info("Refinement rejected: %d characters", len(refined.strip()))
        return merged_text

    logger.info("Response refined successfully")
    return refined
