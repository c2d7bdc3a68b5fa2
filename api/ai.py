"""
AI Route Handlers

Thin HTTP wrappers around the fallback orchestrator. Each route builds its
messages, picks its profile (deadline, token caps, content floor) and maps
the outcome to JSON. No fallback logic lives here.

Degraded responses:
  - /complete  -> canned suggestion, never a blank editor insert
  - /chat      -> apologetic reply, never a stack trace
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from inference import AllBackendsFailedError, Message
from infra import get_orchestrator
from orchestration import ANALYZE, CHAT, EXPLAIN, FallbackOrchestrator
from orchestration.prompts import (
    analysis_messages,
    chat_messages,
    completion_messages,
    explanation_messages,
    repository_metadata,
    summarize_repository,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/ai", tags=["ai"])


class CodeRequest(BaseModel):
    code: str = Field(..., min_length=1)


class ChatRequest(BaseModel):
    message: str = Field(..., min_length=1)
    conversationHistory: List[Message] = Field(default_factory=list)


class RepoFile(BaseModel):
    path: str
    content: Optional[str] = None
    language: Optional[str] = None
    size: int = 0


class AnalyzeRequest(BaseModel):
    files: List[RepoFile] = Field(..., min_length=1)
    owner: str = "unknown"
    repo: str = "unknown"


def _failure(error: str, exc: AllBackendsFailedError, **extra: Any) -> JSONResponse:
    return JSONResponse(
        status_code=500,
        content={"error": error, "details": str(exc), **extra},
    )


@router.post("/complete")
async def complete(
    body: CodeRequest,
    orchestrator: FallbackOrchestrator = Depends(get_orchestrator),
):
    """Return code-only completion for the submitted snippet."""
    logger.info(f"[complete] Request received. Code size: {len(body.code)}")
    try:
        suggestion = await orchestrator.generate_and_extract_code(completion_messages(body.code))
    except AllBackendsFailedError as e:
        return _failure(
            "Failed to get AI completion. Check Ollama and Groq configuration.",
            e,
            suggestion=orchestrator.canned_suggestion(),
        )
    return {"suggestion": suggestion}


@router.post("/explain")
async def explain(
    body: CodeRequest,
    orchestrator: FallbackOrchestrator = Depends(get_orchestrator),
):
    try:
        result = await orchestrator.generate(
            explanation_messages(body.code),
            EXPLAIN.options,
            min_content_chars=EXPLAIN.min_content_chars,
        )
    except AllBackendsFailedError as e:
        return _failure(
            "Failed to generate explanation",
            e,
            suggestion="Try a shorter code snippet or ensure local model is downloaded.",
        )
    return {
        "explanation": result.content,
        "usedModel": result.backend_id,
        "source": result.source_class,
    }


@router.post("/chat")
async def chat(
    body: ChatRequest,
    orchestrator: FallbackOrchestrator = Depends(get_orchestrator),
):
    """Answer a chat message with the recent conversation as context."""
    logger.info(f"[chat] Message length: {len(body.message)}")
    try:
        result = await orchestrator.generate(
            chat_messages(body.message, body.conversationHistory),
            CHAT.options,
            min_content_chars=CHAT.min_content_chars,
        )
    except AllBackendsFailedError as e:
        reply = (
            "I apologize, the request took too long. Please try again or break your "
            "request into smaller parts."
            if e.timed_out
            else "I encountered an error while processing your request. Please try again."
        )
        return _failure("Failed to generate chat response", e, response=reply)
    return {
        "response": result.content,
        "usedModel": result.backend_id,
        "source": result.source_class,
    }


@router.post("/analyze-repo")
async def analyze_repo(
    body: AnalyzeRequest,
    orchestrator: FallbackOrchestrator = Depends(get_orchestrator),
):
    """Structured repository analysis from a file listing."""
    logger.info(f"[analyze-repo] Analyzing {body.owner}/{body.repo}. Files: {len(body.files)}")
    summary = summarize_repository([f.model_dump() for f in body.files])
    try:
        result = await orchestrator.generate(
            analysis_messages(summary, body.owner, body.repo),
            ANALYZE.options,
            min_content_chars=ANALYZE.min_content_chars,
        )
    except AllBackendsFailedError as e:
        return _failure("Failed to analyze repository", e, success=False)

    metadata: Dict[str, Any] = repository_metadata(summary)
    metadata.update({
        "usedModel": result.backend_id,
        "source": result.source_class,
        "analyzedAt": datetime.now(timezone.utc).isoformat(),
    })
    return {"success": True, "analysis": result.content, "metadata": metadata}


@router.get("/models")
async def models(orchestrator: FallbackOrchestrator = Depends(get_orchestrator)):
    """Installed local models plus the configured defaults."""
    registry = orchestrator.registry
    response: Dict[str, Any] = {
        "installed": [],
        "defaultLocalPrimary": registry.local_primary,
        "defaultLocalFallback": registry.local_secondary,
    }
    if orchestrator.local_host is None:
        response["note"] = "No local model host configured."
        return response
    try:
        response["installed"] = await orchestrator.local_host.list_models()
    except Exception as e:
        logger.warning(f"[models] Could not list models: {e}")
        response["note"] = "Could not fetch model list; is Ollama running?"
    return response


@router.get("/health")
async def health(orchestrator: FallbackOrchestrator = Depends(get_orchestrator)):
    return {
        "status": "ok",
        "time": datetime.now(timezone.utc).isoformat(),
        "localConfigured": orchestrator.local_host is not None,
        "remoteConfigured": orchestrator.remote_available(),
    }
