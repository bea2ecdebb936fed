import time
import logging
from typing import Optional, Tuple

from learning_tree import ai_engine, prompts
from learning_tree.core.exceptions import SessionNotFoundError
from learning_tree.schemas import ChatSession, ChatTurn
from learning_tree.services.session_store import SessionStore

logger = logging.getLogger(__name__)


def _new_session_id(store: SessionStore) -> str:
    """Millisecond timestamp, bumped until it is not already taken."""
    candidate = int(time.time() * 1000)
    while str(candidate) in store:
        candidate += 1
    return str(candidate)


async def start_chat(store: SessionStore, topic: str, session_id: Optional[str] = None) -> ChatSession:
    """
    Seed a session with the topic's system instruction and the canned
    greeting. An explicit session_id that already exists is overwritten
    once any in-flight message on it has finished.
    """
    session_id = session_id or _new_session_id(store)
    session = ChatSession(
        session_id=session_id,
        topic=topic,
        history=[
            ChatTurn(role="user", text=prompts.get_chatbot_system_prompt(topic)),
            ChatTurn(role="model", text=prompts.get_chat_greeting(topic)),
        ],
    )
    async with store.lock(session_id):
        store.put(session)
    logger.info(f"[CHAT] 💬 Session {session.session_id} started for: {topic}")
    return session


async def send_message(store: SessionStore, session_id: str, message: str) -> Tuple[str, str]:
    """
    Forward the running history plus ``message`` to the model.
    Turns are appended only after a successful reply.
    Returns (reply, topic).
    """
    if store.get(session_id) is None:
        raise SessionNotFoundError(session_id)

    async with store.lock(session_id):
        # Re-read under the lock: a concurrent start-chat may have replaced it.
        session = store.get(session_id)
        if session is None:
            raise SessionNotFoundError(session_id)

        logger.info(f"[CHAT] Processing message in session {session_id}")
        reply = await ai_engine.generate_chat_reply(list(session.history), message)
        turns = [ChatTurn(role="user", text=message), ChatTurn(role="model", text=reply)]
        session.history.extend(turns)

    return reply, session.topic
