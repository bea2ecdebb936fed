import logging

from fastapi import APIRouter, Depends

from learning_tree import ai_engine
from learning_tree.api.common import error_response, get_session_store
from learning_tree.core.exceptions import InvalidInputError, UpstreamError
from learning_tree.schemas import (
    AnalogyResponse,
    ChatMessageRequest,
    ChatMessageResponse,
    ClinicalResponse,
    ErrorResponse,
    StartChatRequest,
    StartChatResponse,
    TopicRequest,
)
from learning_tree.services import chat_service
from learning_tree.services.session_store import SessionStore

logger = logging.getLogger(__name__)

router = APIRouter(
    responses={
        400: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
    },
)


def _require_topic(topic: str | None) -> str:
    if not topic or not topic.strip():
        raise InvalidInputError("Topic required", "Please provide a topic parameter")
    return topic


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# 1. ANALOGY
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

@router.post("/get-analogy", response_model=AnalogyResponse, tags=["Topic"])
async def get_analogy(request: TopicRequest):
    """Explain a topic with a non-medical analogy."""
    topic = _require_topic(request.topic)
    try:
        analogy = await ai_engine.generate_analogy(topic)
    except UpstreamError as e:
        logger.error(f"[ANALOGY] ❌ {e}")
        return error_response(500, "Failed to generate analogy", str(e))
    return AnalogyResponse(topic=topic, analogy=analogy)


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# 2. CLINICAL RELEVANCE
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

@router.post("/get-clinical", response_model=ClinicalResponse, tags=["Topic"])
async def get_clinical(request: TopicRequest):
    """Relate a topic to clinical practice."""
    topic = _require_topic(request.topic)
    try:
        clinical = await ai_engine.generate_clinical(topic)
    except UpstreamError as e:
        logger.error(f"[CLINICAL] ❌ {e}")
        return error_response(500, "Failed to generate clinical relevance", str(e))
    return ClinicalResponse(topic=topic, clinical=clinical)


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# 3. CHAT
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

@router.post("/start-chat", response_model=StartChatResponse, tags=["Chat"])
async def start_chat(
    request: StartChatRequest,
    store: SessionStore = Depends(get_session_store),
):
    """Open (or replace) a topic-scoped chat session."""
    topic = _require_topic(request.topic)
    session = await chat_service.start_chat(store, topic, request.session_id)
    return StartChatResponse(
        session_id=session.session_id,
        topic=topic,
        message=session.history[-1].text,
    )


@router.post(
    "/chat-message",
    response_model=ChatMessageResponse,
    tags=["Chat"],
    responses={404: {"model": ErrorResponse}},
)
async def chat_message(
    request: ChatMessageRequest,
    store: SessionStore = Depends(get_session_store),
):
    """Send one user message within an existing session."""
    if not request.session_id or not request.message:
        raise InvalidInputError("SessionId and message required")

    try:
        reply, topic = await chat_service.send_message(store, request.session_id, request.message)
    except UpstreamError as e:
        logger.error(f"[CHAT] ❌ Error sending chat message: {e}")
        return error_response(500, "Failed to process message", str(e))

    return ChatMessageResponse(response=reply, topic=topic)
