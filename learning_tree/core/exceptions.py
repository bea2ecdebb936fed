"""
Learning Tree — Error Taxonomy
===============================
  • InvalidInputError     → 400 (caller must fix the request)
  • SessionNotFoundError  → 404
  • UpstreamError         → 500 for single-shot features, skipped per chunk
  • SchemaError           → model output is not a valid learning tree
"""


class InvalidArgumentError(ValueError):
    """A function was called with an argument outside its domain."""


class InvalidInputError(ValueError):
    """A required request field is missing or blank."""

    def __init__(self, error: str, message: str | None = None):
        super().__init__(message or error)
        self.error = error
        self.message = message


class UpstreamError(RuntimeError):
    """The generative model call failed or timed out."""


class SchemaError(ValueError):
    """Model output parsed as JSON but is not a {name, children} tree."""


class ChunkProcessingError(UpstreamError):
    def __init__(self, chunk_index: int, reason: str):
        super().__init__(f"Chunk {chunk_index + 1} failed: {reason}")
        self.chunk_index = chunk_index
        self.reason = reason


class SessionNotFoundError(LookupError):
    def __init__(self, session_id: str):
        super().__init__(f"Chat session '{session_id}' not found")
        self.session_id = session_id
