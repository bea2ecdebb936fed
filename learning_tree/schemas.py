"""
Learning Tree — Pydantic Schemas
=================================
JSON contract consumed by the tree renderer.
Fields are camelCase on the wire; Python code uses snake_case.
"""

from __future__ import annotations

from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ── Tree Models ──────────────────────────────────────────────────────────────

class LearningNode(BaseModel):
    """Recursive topic node: topic → subtopic → key detail."""
    name: str
    children: List[LearningNode] = Field(default_factory=list)

    @field_validator("children", mode="before")
    @classmethod
    def _null_children_as_empty(cls, v):
        return [] if v is None else v


# ── Chat Models ──────────────────────────────────────────────────────────────

class ChatTurn(BaseModel):
    role: Literal["user", "model"]
    text: str


class ChatSession(CamelModel):
    """Server-side conversational state for one topic."""
    session_id: str
    topic: str
    history: List[ChatTurn] = Field(default_factory=list)


# ── Requests ─────────────────────────────────────────────────────────────────
# Fields are optional so missing values surface as 400s from the handlers.

class TopicRequest(CamelModel):
    topic: Optional[str] = None


class StartChatRequest(CamelModel):
    topic: Optional[str] = None
    session_id: Optional[str] = None


class ChatMessageRequest(CamelModel):
    session_id: Optional[str] = None
    message: Optional[str] = None


# ── Responses ────────────────────────────────────────────────────────────────

class UploadMetadata(CamelModel):
    original_length: int
    chunks_processed: int
    chunks_failed: int = 0
    filename: str
    total_pages: int = 0


class UploadResponse(CamelModel):
    success: bool = True
    tree: LearningNode
    metadata: UploadMetadata


class AnalogyResponse(CamelModel):
    success: bool = True
    topic: str
    analogy: str


class ClinicalResponse(CamelModel):
    success: bool = True
    topic: str
    clinical: str


class StartChatResponse(CamelModel):
    success: bool = True
    session_id: str
    topic: str
    message: str


class ChatMessageResponse(CamelModel):
    success: bool = True
    response: str
    topic: str


class HealthResponse(CamelModel):
    status: str = "healthy"
    timestamp: str
    active_sessions: int


class ErrorResponse(BaseModel):
    """
    Standard error envelope.
    Every non-2xx response has this shape; unset fields are dropped.
    """
    error: str
    message: Optional[str] = None
    details: Optional[str] = None
