"""
Learning Tree — Interactive Medical Learning Tree API
======================================================
FastAPI entry point.
  • Global exception handler: never crashes, always returns JSON
  • /upload-pdf : PDF upload → merged three-level topic tree
  • Per-topic analogy, clinical relevance and chat (see api/endpoints/tutor.py)
  • PDF-only validation (content type + magic bytes + size)
  • Async timeout protection on the whole analysis
"""

import asyncio
import logging
import os
import traceback
from datetime import datetime, timezone
from typing import Optional

from fastapi import Depends, FastAPI, File, Request, UploadFile
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from learning_tree.ai_engine import build_learning_tree
from learning_tree.api.common import error_response, get_session_store
from learning_tree.api.endpoints.tutor import router as tutor_router
from learning_tree.core.config import settings
from learning_tree.core.exceptions import InvalidInputError, SessionNotFoundError
from learning_tree.schemas import ErrorResponse, HealthResponse, UploadMetadata, UploadResponse
from learning_tree.services.file_service import (
    exceeds_size_limit,
    extract_text_from_pdf,
    validate_content_type,
    validate_pdf,
)
from learning_tree.services.session_store import InMemorySessionStore, SessionStore

# ── Logging ──────────────────────────────────────────────────────────────────
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s │ %(levelname)-8s │ %(name)s │ %(message)s",
)
logger = logging.getLogger(__name__)

# ── App ──────────────────────────────────────────────────────────────────────
app = FastAPI(
    title="Learning Tree — Interactive Medical Learning Tree API",
    description=(
        "Upload a lecture PDF → receive a three-level topic tree.\n"
        "Select a node → analogy, clinical relevance, or a topic-scoped chat."
    ),
    version="1.0.0",
    responses={
        400: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
    },
)
app.state.session_store = InMemorySessionStore()


# ── Exception Handlers ───────────────────────────────────────────────────────
@app.exception_handler(InvalidInputError)
async def invalid_input_handler(request: Request, exc: InvalidInputError):
    return error_response(400, exc.error, exc.message)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    first = exc.errors()[0] if exc.errors() else {}
    return error_response(400, "Invalid request", first.get("msg"))


@app.exception_handler(SessionNotFoundError)
async def session_not_found_handler(request: Request, exc: SessionNotFoundError):
    logger.info(f"[CHAT] Unknown session {exc.session_id}")
    return error_response(404, "Session not found", "Please start a new chat session")


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Catch-all: every unhandled exception returns a clean JSON envelope."""
    logger.error(f"⚠️ Unhandled exception on {request.url.path}: {exc}", exc_info=True)
    return error_response(500, "Internal server error", str(exc))


# ── CORS ─────────────────────────────────────────────────────────────────────
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ── Health Check ─────────────────────────────────────────────────────────────
@app.get("/health", response_model=HealthResponse, tags=["System"])
async def health_check(store: SessionStore = Depends(get_session_store)):
    return HealthResponse(
        timestamp=datetime.now(timezone.utc).isoformat(),
        active_sessions=len(store),
    )


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# UPLOAD ENDPOINT: /upload-pdf
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

@app.post(
    "/upload-pdf",
    response_model=UploadResponse,
    tags=["Processing"],
    summary="Upload a PDF and receive its learning tree",
    responses={413: {"model": ErrorResponse}, 504: {"model": ErrorResponse}},
)
async def upload_pdf(pdf_file: Optional[UploadFile] = File(None, alias="pdfFile")):
    """
    1. Validates the uploaded PDF (content type, magic bytes, size)
    2. Extracts text via PyMuPDF
    3. Requests a tree per chunk and merges them
    4. Returns the tree with chunk metadata
    """
    logger.info("[UPLOAD] 📄 Received PDF upload request")

    if pdf_file is None:
        return error_response(400, "No file uploaded", "Please upload a PDF file")

    filename = pdf_file.filename or "unknown.pdf"
    too_large = error_response(
        413,
        "File too large",
        f"Maximum size is {settings.MAX_FILE_SIZE_MB} MB.",
    )

    # ── Reject on declared type / size before reading the body ──────────────
    try:
        validate_content_type(pdf_file.content_type)
    except ValueError as e:
        return error_response(400, "Invalid file", str(e))
    if exceeds_size_limit(pdf_file.size):
        return too_large

    content = await pdf_file.read()
    if exceeds_size_limit(len(content)):
        return too_large

    try:
        validate_pdf(content, pdf_file.content_type)
    except ValueError as e:
        return error_response(400, "Invalid file", str(e))

    try:
        extracted = await extract_text_from_pdf(content)

        if not extracted.text.strip():
            return error_response(
                400,
                "Empty PDF",
                "The PDF appears to be empty or contains no extractable text",
            )

        result = await asyncio.wait_for(
            build_learning_tree(extracted.text),
            timeout=settings.AI_TIMEOUT_SECONDS,
        )
    except asyncio.TimeoutError:
        return error_response(
            504,
            "Processing timed out",
            f"AI processing timed out after {settings.AI_TIMEOUT_SECONDS}s.",
        )
    except Exception as e:
        logger.error(f"[UPLOAD] ❌ Error during PDF processing: {e}", exc_info=True)
        return error_response(
            500,
            "Processing failed",
            str(e),
            details=traceback.format_exc() if settings.is_development else None,
        )

    logger.info(
        f"[UPLOAD] ✓ {filename} — {extracted.page_count} pages — "
        f"{result.chunks_processed} chunks ({result.chunks_failed} failed)"
    )

    return UploadResponse(
        tree=result.tree,
        metadata=UploadMetadata(
            original_length=len(extracted.text),
            chunks_processed=result.chunks_processed,
            chunks_failed=result.chunks_failed,
            filename=filename,
            total_pages=extracted.page_count,
        ),
    )


app.include_router(tutor_router)

# ── Client renderer (optional) ───────────────────────────────────────────────
if os.path.isdir(settings.FRONTEND_DIR):
    app.mount("/", StaticFiles(directory=settings.FRONTEND_DIR, html=True), name="frontend")
    logger.info(f"[INIT] Serving client from {settings.FRONTEND_DIR}/")


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host=settings.HOST, port=settings.PORT)
