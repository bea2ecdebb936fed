import logging

from learning_tree.core.config import settings
from learning_tree.core.exceptions import InvalidArgumentError

logger = logging.getLogger(__name__)

PARAGRAPH_SEPARATOR = "\n\n"


def chunk_text(text: str, max_length: int | None = None) -> list[str]:
    """
    Split text into chunks of at most ``max_length`` characters.

    Paragraphs (blank-line separated) are packed greedily into a buffer.
    A paragraph that alone exceeds ``max_length`` is hard-sliced into
    fixed-size pieces. Chunks are trimmed, never empty, and kept in
    document order.
    """
    max_length = settings.CHUNK_SIZE if max_length is None else max_length
    if max_length <= 0:
        raise InvalidArgumentError(f"max_length must be positive, got {max_length}")

    if not text or not text.strip():
        return []

    chunks: list[str] = []
    current = ""

    def flush() -> None:
        nonlocal current
        if current.strip():
            chunks.append(current.strip())
        current = ""

    for paragraph in text.split(PARAGRAPH_SEPARATOR):
        if not paragraph.strip():
            continue

        candidate = f"{current}{PARAGRAPH_SEPARATOR}{paragraph}" if current else paragraph
        if len(candidate.strip()) <= max_length:
            current = candidate
            continue

        flush()
        if len(paragraph.strip()) > max_length:
            paragraph = paragraph.strip()
            for start in range(0, len(paragraph), max_length):
                piece = paragraph[start:start + max_length].strip()
                if piece:
                    chunks.append(piece)
        else:
            current = paragraph

    flush()

    logger.debug(f"[CHUNKER] {len(text)} chars → {len(chunks)} chunks (max {max_length})")
    return chunks
