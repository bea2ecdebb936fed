"""
Learning Tree — AI Engine
==========================
Handles all interactions with AI providers (Gemini + Groq) for:
  1. Learning-tree extraction (one JSON tree per text chunk, then merged)
  2. Per-topic analogy and clinical relevance (plain text)
  3. Topic-scoped chat replies over a stored history

Features:
  - Strict JSON decode into LearningNode (SchemaError on bad shape)
  - Provider failover in hybrid mode, single attempt per provider
  - Per-call timeout on every outbound request
  - Partial success: a failed chunk is recorded and skipped
"""

import json
import re
import logging
import asyncio
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import google.generativeai as genai
from groq import AsyncGroq
from pydantic import ValidationError

from learning_tree import prompts
from learning_tree.core.config import settings
from learning_tree.core.exceptions import ChunkProcessingError, SchemaError, UpstreamError
from learning_tree.schemas import ChatTurn, LearningNode
from learning_tree.services.chunker import chunk_text
from learning_tree.services.tree_merger import merge_trees

logger = logging.getLogger(__name__)

# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# CLIENT INITIALIZATION
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

logger.info(f"[AI‑ENGINE] Provider mode: {settings.AI_PROVIDER}")

groq_client: Optional[AsyncGroq] = None
if settings.GROQ_API_KEY:
    groq_client = AsyncGroq(api_key=settings.GROQ_API_KEY)
    logger.info("[AI‑ENGINE] ✓ Groq client ready")
else:
    logger.warning("[AI‑ENGINE] ✗ Groq API key missing")

if settings.GOOGLE_API_KEY:
    genai.configure(api_key=settings.GOOGLE_API_KEY, transport="rest")
    logger.info("[AI‑ENGINE] ✓ Gemini client ready")
else:
    logger.warning("[AI‑ENGINE] ✗ Google API key missing")


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# JSON RECOVERY + STRICT DECODE
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

def clean_and_parse_json(raw_text: str) -> Any:
    """
    Robust JSON extractor:
    1. Parse the response as-is
    2. Otherwise strip markdown code fences (```json ... ```)
    3. Extract first { ... } block and parse again
    Raises SchemaError on failure with diagnostic info.
    """
    if not raw_text or not raw_text.strip():
        raise SchemaError("Empty AI response received")

    cleaned = raw_text.strip()

    try:
        return json.loads(cleaned)
    except json.JSONDecodeError:
        pass

    fence_match = re.search(r"```(?:json)?\s*\n?(.*?)\n?\s*```", cleaned, re.DOTALL)
    if fence_match:
        cleaned = fence_match.group(1).strip()

    if not cleaned.startswith(("{", "[")):
        brace_match = re.search(r"\{.*\}", cleaned, re.DOTALL)
        if brace_match:
            cleaned = brace_match.group(0)

    try:
        return json.loads(cleaned)
    except json.JSONDecodeError as e:
        logger.error(f"JSON parse failed. Raw (first 500 chars): {raw_text[:500]}")
        raise SchemaError(f"AI returned invalid JSON: {e}")


def decode_learning_node(data: Any) -> LearningNode:
    """Validate the recursive {name, children} shape."""
    if not isinstance(data, dict):
        raise SchemaError(f"Expected a JSON object, got {type(data).__name__}")
    try:
        return LearningNode.model_validate(data)
    except ValidationError as e:
        raise SchemaError(f"AI returned a malformed tree: {e.error_count()} error(s), first: {e.errors()[0]['msg']}")


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# PROVIDER CALLS
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

def _gemini_model(json_mode: bool) -> "genai.GenerativeModel":
    config: Dict[str, Any] = {}
    if json_mode:
        config["response_mime_type"] = "application/json"
    return genai.GenerativeModel(model_name=settings.GEMINI_MODEL, generation_config=config)


def _groq_messages(history: List[ChatTurn], message: str) -> List[Dict[str, str]]:
    messages = [
        {"role": "assistant" if turn.role == "model" else "user", "content": turn.text}
        for turn in history
    ]
    messages.append({"role": "user", "content": message})
    return messages


async def _call_gemini(prompt: str, json_mode: bool = False) -> str:
    """Single Gemini completion; JSON mode sets the response MIME type."""
    if not settings.GOOGLE_API_KEY:
        raise ValueError("Google API Key missing")

    logger.info(f"[AI‑ENGINE] Calling Gemini ({settings.GEMINI_MODEL})...")
    model = _gemini_model(json_mode)
    response = await asyncio.to_thread(model.generate_content, prompt)
    logger.info("[AI‑ENGINE] ✓ Gemini call succeeded")
    return response.text


async def _call_groq(prompt: str, json_mode: bool = False) -> str:
    if not groq_client:
        raise ValueError("Groq API Key missing")

    logger.info(f"[AI‑ENGINE] Calling Groq ({settings.GROQ_MODEL})...")
    completion = await groq_client.chat.completions.create(
        model=settings.GROQ_MODEL,
        messages=[{"role": "user", "content": prompt}],
        response_format={"type": "json_object"} if json_mode else None,
        max_tokens=8000,
    )
    result = completion.choices[0].message.content
    logger.info("[AI‑ENGINE] ✓ Groq call succeeded")
    return result


async def _chat_gemini(history: List[ChatTurn], message: str) -> str:
    """Replay the stored history into a Gemini chat and send one message."""
    if not settings.GOOGLE_API_KEY:
        raise ValueError("Google API Key missing")

    model = _gemini_model(json_mode=False)
    chat = model.start_chat(
        history=[{"role": turn.role, "parts": [turn.text]} for turn in history]
    )
    response = await asyncio.to_thread(chat.send_message, message)
    return response.text


async def _chat_groq(history: List[ChatTurn], message: str) -> str:
    if not groq_client:
        raise ValueError("Groq API Key missing")

    completion = await groq_client.chat.completions.create(
        model=settings.GROQ_MODEL,
        messages=_groq_messages(history, message),
        max_tokens=4000,
    )
    return completion.choices[0].message.content


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# HYBRID CALL WITH FAILOVER
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

def _provider_order(primary: str, gemini_caller, groq_caller) -> list:
    provider = settings.AI_PROVIDER

    if provider == "groq":
        return [("Groq", groq_caller)]
    if provider == "gemini":
        return [("Gemini", gemini_caller)]
    # hybrid
    if primary == "groq":
        return [("Groq", groq_caller), ("Gemini", gemini_caller)]
    return [("Gemini", gemini_caller), ("Groq", groq_caller)]


async def _run_with_failover(callers: list, *args) -> str:
    last_error = None
    for name, caller in callers:
        try:
            result = await asyncio.wait_for(caller(*args), timeout=settings.LLM_TIMEOUT_SECONDS)
            if result is None or not str(result).strip():
                raise ValueError(f"{name} returned an empty response")
            return result
        except asyncio.TimeoutError:
            last_error = TimeoutError(f"{name} timed out after {settings.LLM_TIMEOUT_SECONDS}s")
            logger.warning(f"[AI‑ENGINE] {last_error}")
        except Exception as e:
            last_error = e
            logger.warning(f"[AI‑ENGINE] {name} failed: {str(e)[:200]}")

    raise UpstreamError(f"All AI providers failed. Last error: {last_error}")


async def _hybrid_call(prompt: str, json_mode: bool = False, primary: str = "gemini") -> str:
    """
    Execute a completion with automatic failover.
    In 'hybrid' mode: tries primary first, then the other.
    """
    callers = _provider_order(primary, _call_gemini, _call_groq)
    return await _run_with_failover(callers, prompt, json_mode)


async def _hybrid_chat(history: List[ChatTurn], message: str, primary: str = "gemini") -> str:
    callers = _provider_order(primary, _chat_gemini, _chat_groq)
    return await _run_with_failover(callers, history, message)


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# LEARNING TREE
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

@dataclass
class ChunkFailure:
    index: int
    reason: str


@dataclass
class TreeBuildResult:
    tree: LearningNode
    chunks_processed: int
    successes: List[LearningNode] = field(default_factory=list)
    failures: List[ChunkFailure] = field(default_factory=list)

    @property
    def chunks_failed(self) -> int:
        return len(self.failures)


async def request_structure(chunk: str, index: int) -> LearningNode:
    """One model call for one chunk. Any failure becomes ChunkProcessingError."""
    prompt = prompts.get_structure_prompt(chunk)
    try:
        raw = await _hybrid_call(prompt, json_mode=True)
        return decode_learning_node(clean_and_parse_json(raw))
    except (UpstreamError, SchemaError) as e:
        raise ChunkProcessingError(index, str(e)) from e


async def build_learning_tree(text: str, chunk_size: int | None = None) -> TreeBuildResult:
    """
    Chunk the text, request a tree per chunk sequentially, merge the
    successes. Failed chunks are recorded and skipped.
    """
    chunks = chunk_text(text, chunk_size)
    logger.info(f"[TREE] Split {len(text)} chars into {len(chunks)} chunks")

    successes: List[LearningNode] = []
    failures: List[ChunkFailure] = []

    for index, chunk in enumerate(chunks):
        logger.info(f"[TREE] Processing chunk {index + 1}/{len(chunks)}...")
        try:
            successes.append(await request_structure(chunk, index))
        except ChunkProcessingError as e:
            logger.warning(f"[TREE] ⚠ {e}")
            failures.append(ChunkFailure(index=e.chunk_index, reason=e.reason))

    tree = merge_trees(successes)
    logger.info(
        f"[TREE] ✓ Merged {len(successes)} trees "
        f"({len(failures)} of {len(chunks)} chunks failed)"
    )
    return TreeBuildResult(
        tree=tree,
        chunks_processed=len(chunks),
        successes=successes,
        failures=failures,
    )


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# PER-TOPIC HELPERS
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

async def generate_analogy(topic: str) -> str:
    logger.info(f"[ANALOGY] Generating for: {topic}")
    text = await _hybrid_call(prompts.get_analogy_prompt(topic))
    logger.info("[ANALOGY] ✓ Generated")
    return text


async def generate_clinical(topic: str) -> str:
    logger.info(f"[CLINICAL] Generating for: {topic}")
    text = await _hybrid_call(prompts.get_clinical_prompt(topic))
    logger.info("[CLINICAL] ✓ Generated")
    return text


async def generate_chat_reply(history: List[ChatTurn], message: str) -> str:
    return await _hybrid_chat(history, message)
