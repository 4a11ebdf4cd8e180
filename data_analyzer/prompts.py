"""Prompt builders for analysis, chat and refinement."""

import json
from typing import Any, List, Optional

from .config import (
    ANALYSIS_TEMPERATURE,
    ANALYSIS_MAX_TOKENS,
    TABLES_PROMPT_CHAR_LIMIT,
    TEXT_SAMPLE_CHAR_LIMIT,
    CHAT_TEMPERATURE,
    CHAT_MAX_TOKENS,
    CHAT_CONTEXT_CHAR_LIMIT,
    REFINE_TEMPERATURE,
    REFINE_MAX_TOKENS,
    ASSISTANT_NAME,
)
from .models import Prompt, Table

# "You are a data analysis assistant. Return JSON only. Never return prose or chatter."
ANALYSIS_SYSTEM_PROMPT = "تۆ یاریدەدەری بینینەوەی داتایت. تەنها JSON بدە. هه‌رگیز دەق یان ڕەشەلەق مەهێنە."

ANALYSIS_RESPONSE_SHAPE = (
    '{"summary":"...","insights":["...","..."],"explanations":["...","..."],'
    '"charts":[{"id":"chart1","title":"Descriptive Title","type":"bar","labels":["A","B"],'
    '"datasets":[{"label":"Series Name","data":[10,20]}]}]}'
)


def _dumps(value: Any) -> str:
    return json.dumps(value, ensure_ascii=False, default=str)


def _utf8_safe(text: str) -> str:
    # Lone surrogates from request JSON cannot be sent as UTF-8.
    return text.encode("utf-8", "replace").decode("utf-8")


def build_analysis_prompt(tables: List[Table], texts: List[str], notes: str = "") -> Prompt:
    """Build the structured-analysis prompt sent to both providers."""
    meta = {
        "tables": [
            {"name": table.name, "columns": table.columns, "row_count": len(table.rows)}
            for table in tables
        ],
        "text_lengths": [len(text) for text in texts],
    }
    tables_json = _dumps([table.model_dump() for table in tables])[:TABLES_PROMPT_CHAR_LIMIT]
    text_samples = "\n---\n".join(text[:TEXT_SAMPLE_CHAR_LIMIT] for text in texts)

    user_prompt = f"""You are analyzing diverse data (tables/text) to generate comprehensive insights and visualizations.

DATA ANALYSIS REQUIREMENTS:

1. CHARTS - Generate 8-12 meaningful visualizations (REQUIRED):
   - Create charts for ALL numeric columns in the data
   - Create distribution charts for ALL categorical columns
   - Bar/line charts for trends over time, histograms for value distributions,
     scatter plots for correlations between numeric columns,
     pie charts for categorical breakdowns (if categories < 10)
   - For text/categorical data: bar charts of frequency counts, pie charts of percentage breakdowns
   - Use descriptive titles that explain what the chart shows
   - Allowed types: bar, line, pie, scatter, histogram
   - Never include empty datasets

2. SUMMARY (3-5 sentences):
   - Overview of the dataset scope and key characteristics
   - Main patterns or trends identified
   - Notable statistics or findings

3. INSIGHTS (15-20 bullet points, 1-2 sentences each):
   - Be specific, quoting actual names, values, years and categories from the data
   - Compare groups and time periods where the data allows it

4. EXPLANATIONS (15-25 detailed paragraphs, 5-8 sentences each):
   - Explain WHY patterns exist, with context and implications
   - Connect multiple data points and compare groups or periods
   - Include actionable recommendations

DATA PROVIDED:
Metadata: {_dumps(meta)}

Tables: {tables_json}

Text samples: {text_samples}

Additional notes: {notes}

RESPOND WITH VALID JSON ONLY:
{ANALYSIS_RESPONSE_SHAPE}"""

    return Prompt(
        system=ANALYSIS_SYSTEM_PROMPT,
        user=_utf8_safe(user_prompt),
        json_mode=True,
        temperature=ANALYSIS_TEMPERATURE,
        max_tokens=ANALYSIS_MAX_TOKENS,
    )


def build_chat_prompt(message: str, context: Optional[Any] = None) -> Prompt:
    """Build the chat prompt. Context is serialised and capped before embedding."""
    context_section = ""
    if context is not None:
        context_section = f"""
DATA CONTEXT:
{_dumps(context)[:CHAT_CONTEXT_CHAR_LIMIT]}

User's data is loaded. Answer questions about their data, provide insights, and help with analysis.
"""

    user_prompt = f"""{context_section}

USER QUESTION: {message}

IMPORTANT INSTRUCTIONS:
- If the user writes in Kurdish (کوردی), respond in Kurdish
- If the user writes in English, respond in English
- If the user writes in Arabic, respond in Arabic
- Always match the user's language
- Provide helpful, detailed answers based on the data context (if available) or general knowledge
- Be conversational and friendly"""

    return Prompt(user=_utf8_safe(user_prompt), temperature=CHAT_TEMPERATURE, max_tokens=CHAT_MAX_TOKENS)


def build_refine_prompt(merged_text: str, original_question: str) -> Prompt:
    refine_prompt = f"""You are {ASSISTANT_NAME}. You have received multiple AI responses to a user's question. Your job is to combine, refine, and present them as ONE cohesive, natural response.

ORIGINAL QUESTION: {original_question}

MERGED RESPONSES:
{merged_text}

INSTRUCTIONS:
1. Combine the information from the responses into ONE natural, flowing answer
2. Remove any redundancy or repetition
3. Keep the same language as the original question (Kurdish/English/Arabic)
4. Make it sound like it came from a single AI assistant
5. Keep all important information and insights
6. Be concise but comprehensive
7. Maintain a friendly, helpful tone

Provide ONLY the refined response, nothing else:"""

    return Prompt(user=_utf8_safe(refine_prompt), temperature=REFINE_TEMPERATURE, max_tokens=REFINE_MAX_TOKENS)
