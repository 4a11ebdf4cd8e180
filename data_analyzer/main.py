"""FastAPI backend for the AI Data Analyzer with dual-provider analysis and chat."""

import logging

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel
from typing import List, Any, Optional

from .config import ASSISTANT_NAME, CORS_ORIGINS, LOG_LEVEL, PORT
from .models import AggregateFailure, AnalysisResult, ChatResult, Table
from .pipeline import analyze_structured, chat
from .providers import build_provider_clients

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

# Credentials are read once; a client without a key stays unavailable.
PRIMARY_CLIENT, SECONDARY_CLIENT = build_provider_clients()

app = FastAPI(title=f"{ASSISTANT_NAME} API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_methods=["*"],
    allow_headers=["*"],
)


class AnalyzeRequest(BaseModel):
    tables: List[Table] = []
    texts: List[str] = []
    notes: str = ""


class ChatRequest(BaseModel):
    message: Optional[str] = None
    context: Optional[Any] = None


@app.get("/")
async def root():
    return {"status": "ok", "service": f"{ASSISTANT_NAME} API"}


@app.post("/api/analyze", response_model=AnalysisResult)
async def analyze(request: AnalyzeRequest):
    """Analyze tables and texts with both providers and return the merged result."""
    result = await analyze_structured(
        request.tables,
        request.texts,
        request.notes,
        PRIMARY_CLIENT,
        SECONDARY_CLIENT,
    )
    if isinstance(result, AggregateFailure):
        raise HTTPException(status_code=500, detail=result.message)
    return result


@app.post("/api/chat", response_model=ChatResult)
async def chat_endpoint(request: ChatRequest):
    """Answer a question with both providers and return one merged reply."""
    if not request.message or not request.message.strip():
        raise HTTPException(status_code=400, detail="Message is required")

    result = await chat(request.message, request.context, PRIMARY_CLIENT, SECONDARY_CLIENT)
    if isinstance(result, AggregateFailure):
        raise HTTPException(status_code=500, detail=result.message)
    return result


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("data_analyzer.main:app", host="0.0.0.0", port=PORT)
