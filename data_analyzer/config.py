"""Configuration for the AI Data Analyzer."""

import os
from pathlib import Path
from dotenv import load_dotenv

load_dotenv(dotenv_path=Path(__file__).resolve().parents[1] / ".env")

# Provider credentials. A missing key leaves that provider unavailable.
OPENAI_API_KEY = os.getenv("OPENAI_API_KEY")
CLAUDE_API_KEY = os.getenv("CLAUDE_API_KEY")

# Provider endpoints
OPENAI_API_URL = "https://api.openai.com/v1/chat/completions"
CLAUDE_API_URL = "https://api.anthropic.com/v1/messages"
ANTHROPIC_VERSION = "2023-06-01"

# Provider models
OPENAI_MODEL = os.getenv("OPENAI_MODEL", "gpt-4o-mini")
CLAUDE_MODEL = os.getenv("CLAUDE_MODEL", "claude-3-haiku-20240307")

# Display names, also used to attribute the secondary summary
OPENAI_LABEL = "OpenAI"
CLAUDE_LABEL = "Claude"

# Claude rejects max_tokens above the model's output limit
CLAUDE_MAX_OUTPUT_TOKENS = int(os.getenv("CLAUDE_MAX_OUTPUT_TOKENS", "4096"))

# Transport timeout for a single provider call (seconds)
PROVIDER_TIMEOUT = float(os.getenv("PROVIDER_TIMEOUT", "120"))

# Structured analysis
ANALYSIS_TEMPERATURE = 0.7
ANALYSIS_MAX_TOKENS = 16000
TABLES_PROMPT_CHAR_LIMIT = 800000
TEXT_SAMPLE_CHAR_LIMIT = 8000

# Chat
CHAT_TEMPERATURE = 0.7
CHAT_MAX_TOKENS = 1000
CHAT_CONTEXT_CHAR_LIMIT = 10000

# A same-language answer wins outright when longer than the other by this factor
LENGTH_PREFERENCE_RATIO = 1.5

# Refinement
REFINE_ENABLED = os.getenv("REFINE_ENABLED", "true").lower() in ("1", "true", "yes")
REFINE_TEMPERATURE = 0.5
REFINE_MAX_TOKENS = 1500
REFINE_MIN_LENGTH = 50

# Assistant identity
ASSISTANT_NAME = "AI Data Analyzer"
ASSISTANT_VERSION = "v0.0.1"
ASSISTANT_LABEL = f"{ASSISTANT_NAME} {ASSISTANT_VERSION}"

# Server
CORS_ORIGINS = ["*"]
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
PORT = int(os.getenv("PORT", "3000"))
