import json

import fitz  # PyMuPDF
import pytest
from fastapi.testclient import TestClient

from learning_tree import ai_engine
from learning_tree.core.config import settings
from learning_tree.main import app
from learning_tree.services.session_store import InMemorySessionStore

SAMPLE_TREE = {
    "name": "Root",
    "children": [
        {
            "name": "Sistem Kardiovaskular",
            "children": [
                {"name": "Jantung", "children": [{"name": "Atrium", "children": []}]},
            ],
        }
    ],
}


def make_pdf(*pages: str) -> bytes:
    doc = fitz.open()
    for text in pages:
        page = doc.new_page()
        if text:
            page.insert_text((50, 72), text)
    data = doc.tobytes()
    doc.close()
    return data


class FakeModel:
    """Records prompts and replays canned responses in order."""

    def __init__(self):
        self.prompts = []
        self.chats = []
        self.responses = []
        self.chat_reply = "Jawaban tutor"

    async def call(self, prompt, json_mode=False):
        self.prompts.append((prompt, json_mode))
        if self.responses:
            item = self.responses.pop(0)
        else:
            item = json.dumps(SAMPLE_TREE) if json_mode else "Teks penjelasan"
        if isinstance(item, Exception):
            raise item
        return item

    async def chat(self, history, message):
        self.chats.append((list(history), message))
        if isinstance(self.chat_reply, Exception):
            raise self.chat_reply
        return self.chat_reply


@pytest.fixture
def fake_model(monkeypatch):
    model = FakeModel()
    monkeypatch.setattr(settings, "AI_PROVIDER", "gemini")
    monkeypatch.setattr(ai_engine, "_call_gemini", model.call)
    monkeypatch.setattr(ai_engine, "_chat_gemini", model.chat)
    return model


@pytest.fixture
def client(fake_model):
    app.state.session_store = InMemorySessionStore()
    return TestClient(app, raise_server_exceptions=False)
