from learning_tree import main
from learning_tree.api.common import get_session_store
from learning_tree.core.exceptions import UpstreamError
from learning_tree.core.config import settings

from conftest import make_pdf


def _upload(client, data, content_type="application/pdf", filename="kuliah.pdf"):
    return client.post("/upload-pdf", files={"pdfFile": (filename, data, content_type)})


# ── Health ───────────────────────────────────────────────────────────────────

def test_health(client):
    r = client.get("/health")
    assert r.status_code == 200
    j = r.json()
    assert j["status"] == "healthy"
    assert j["activeSessions"] == 0
    assert "timestamp" in j


# ── Upload ───────────────────────────────────────────────────────────────────

def test_upload_returns_tree_and_metadata(client, fake_model):
    r = _upload(client, make_pdf("Jantung memompa darah ke seluruh tubuh."))

    assert r.status_code == 200
    j = r.json()
    assert j["success"] is True
    assert j["tree"]["children"][0]["name"] == "Sistem Kardiovaskular"
    assert j["metadata"]["filename"] == "kuliah.pdf"
    assert j["metadata"]["chunksProcessed"] == 1
    assert j["metadata"]["chunksFailed"] == 0
    assert j["metadata"]["originalLength"] > 0
    assert j["metadata"]["totalPages"] == 1
    assert "Jantung memompa darah" in fake_model.prompts[0][0]


def test_upload_reports_failed_chunks(client, fake_model, monkeypatch):
    monkeypatch.setattr(settings, "CHUNK_SIZE", 40)
    fake_model.responses = [RuntimeError("quota")]

    r = _upload(client, make_pdf("Halaman pertama tentang jantung.", "Halaman kedua tentang paru."))

    assert r.status_code == 200
    meta = r.json()["metadata"]
    assert meta["chunksProcessed"] == 2
    assert meta["chunksFailed"] == 1


def test_upload_without_file(client):
    r = client.post("/upload-pdf")
    assert r.status_code == 400
    assert r.json() == {"error": "No file uploaded", "message": "Please upload a PDF file"}


def test_upload_rejects_non_pdf_content_type(client):
    r = _upload(client, make_pdf("teks"), content_type="text/plain", filename="a.txt")
    assert r.status_code == 400
    assert "Only PDF files are allowed" in r.json()["message"]


def test_upload_rejects_bad_magic_bytes(client):
    r = _upload(client, b"not really a pdf")
    assert r.status_code == 400
    assert r.json()["error"] == "Invalid file"


def test_upload_rejects_oversized_file(client, monkeypatch):
    monkeypatch.setattr(settings, "MAX_FILE_SIZE_MB", 0)
    r = _upload(client, make_pdf("teks"))
    assert r.status_code == 413


def test_upload_pdf_without_text(client, fake_model):
    r = _upload(client, make_pdf(""))
    assert r.status_code == 400
    assert r.json()["error"] == "Empty PDF"
    assert fake_model.prompts == []


def test_upload_extraction_error_is_processing_failure(client, monkeypatch):
    async def broken(content):
        raise RuntimeError("cannot open broken document")

    monkeypatch.setattr(main, "extract_text_from_pdf", broken)
    r = _upload(client, make_pdf("teks"))

    assert r.status_code == 500
    j = r.json()
    assert j == {"error": "Processing failed", "message": "cannot open broken document"}

    monkeypatch.setattr(settings, "ENVIRONMENT", "development")
    r = _upload(client, make_pdf("teks"))
    assert "RuntimeError" in r.json()["details"]


# ── Analogy / clinical ───────────────────────────────────────────────────────

def test_get_analogy(client, fake_model):
    fake_model.responses = ["Jantung seperti pompa air."]
    r = client.post("/get-analogy", json={"topic": "Jantung"})

    assert r.status_code == 200
    assert r.json() == {"success": True, "topic": "Jantung", "analogy": "Jantung seperti pompa air."}
    prompt, json_mode = fake_model.prompts[0]
    assert json_mode is False
    assert "[TOPIC]" not in prompt
    assert prompt.count("Jantung") >= 2


def test_get_clinical(client, fake_model):
    fake_model.responses = ["Relevansi Klinis: gagal jantung."]
    r = client.post("/get-clinical", json={"topic": "Jantung"})

    assert r.status_code == 200
    assert r.json()["clinical"] == "Relevansi Klinis: gagal jantung."


def test_topic_required(client):
    for path in ("/get-analogy", "/get-clinical", "/start-chat"):
        r = client.post(path, json={})
        assert r.status_code == 400
        assert r.json() == {"error": "Topic required", "message": "Please provide a topic parameter"}


def test_upstream_failure_is_500(client, fake_model):
    fake_model.responses = [RuntimeError("model down")]
    r = client.post("/get-analogy", json={"topic": "Jantung"})

    assert r.status_code == 500
    assert r.json()["error"] == "Failed to generate analogy"


def test_malformed_body_is_400(client):
    r = client.post("/get-analogy", content="{not json", headers={"Content-Type": "application/json"})
    assert r.status_code == 400
    assert r.json()["error"] == "Invalid request"


# ── Chat ─────────────────────────────────────────────────────────────────────

def test_chat_flow(client, fake_model):
    r = client.post("/start-chat", json={"topic": "Jantung"})
    assert r.status_code == 200
    j = r.json()
    session_id = j["sessionId"]
    assert j["topic"] == "Jantung"
    assert j["message"] == "Saya siap membantu Anda memahami Jantung. Apa yang ingin Anda tanyakan?"

    r = client.post("/chat-message", json={"sessionId": session_id, "message": "Apa itu sistole?"})
    assert r.status_code == 200
    assert r.json() == {"success": True, "response": "Jawaban tutor", "topic": "Jantung"}

    history, message = fake_model.chats[0]
    assert message == "Apa itu sistole?"
    assert [turn.role for turn in history] == ["user", "model"]
    assert "Jantung" in history[0].text

    client.post("/chat-message", json={"sessionId": session_id, "message": "Dan diastole?"})
    history, _ = fake_model.chats[1]
    assert [turn.text for turn in history[2:]] == ["Apa itu sistole?", "Jawaban tutor"]


def test_chat_unknown_session(client):
    client.post("/start-chat", json={"topic": "Jantung"})
    r = client.post("/chat-message", json={"sessionId": "never-issued", "message": "Halo"})

    assert r.status_code == 404
    assert r.json() == {"error": "Session not found", "message": "Please start a new chat session"}


def test_chat_message_requires_fields(client):
    r = client.post("/chat-message", json={"sessionId": "123"})
    assert r.status_code == 400
    assert r.json() == {"error": "SessionId and message required"}


def test_chat_upstream_failure_keeps_history(client, fake_model):
    session_id = client.post("/start-chat", json={"topic": "Paru"}).json()["sessionId"]
    fake_model.chat_reply = UpstreamError("down")

    r = client.post("/chat-message", json={"sessionId": session_id, "message": "Halo"})
    assert r.status_code == 500
    assert r.json()["error"] == "Failed to process message"

    session = client.app.state.session_store.get(session_id)
    assert len(session.history) == 2


def test_explicit_session_id_is_overwritten(client):
    r1 = client.post("/start-chat", json={"topic": "Jantung", "sessionId": "abc"})
    r2 = client.post("/start-chat", json={"topic": "Ginjal", "sessionId": "abc"})

    assert r1.json()["sessionId"] == r2.json()["sessionId"] == "abc"
    assert client.get("/health").json()["activeSessions"] == 1
    assert client.app.state.session_store.get("abc").topic == "Ginjal"


def test_active_sessions_count(client):
    for topic in ("Jantung", "Paru", "Ginjal"):
        client.post("/start-chat", json={"topic": topic})
    assert client.get("/health").json()["activeSessions"] == 3

    session_id = client.post("/start-chat", json={"topic": "Hati"}).json()["sessionId"]
    client.post("/chat-message", json={"sessionId": session_id, "message": "Halo"})
    assert client.get("/health").json()["activeSessions"] == 4


def test_upload_empty_file(client):
    r = _upload(client, b"", filename="a.pdf")
    assert r.status_code == 400
    assert r.json() == {"error": "Invalid file", "message": "Uploaded file is empty."}


def test_upload_oversized_non_pdf_is_rejected_on_type(client, monkeypatch):
    monkeypatch.setattr(settings, "MAX_FILE_SIZE_MB", 0)
    r = _upload(client, b"x" * 2048, content_type="text/plain", filename="a.txt")
    assert r.status_code == 400
    assert r.json()["error"] == "Invalid file"


def test_unhandled_error_becomes_json_500(client):
    def broken_store():
        raise KeyError("session_store")

    client.app.dependency_overrides[get_session_store] = broken_store
    try:
        r = client.get("/health")
    finally:
        client.app.dependency_overrides.clear()

    assert r.status_code == 500
    assert r.json() == {"error": "Internal server error", "message": "'session_store'"}


def test_empty_model_reply_is_upstream_failure(client, fake_model):
    fake_model.responses = [None]
    r = client.post("/get-analogy", json={"topic": "Jantung"})

    assert r.status_code == 500
    assert r.json()["error"] == "Failed to generate analogy"


def test_empty_chat_reply_keeps_history(client, fake_model):
    session_id = client.post("/start-chat", json={"topic": "Paru"}).json()["sessionId"]
    fake_model.chat_reply = None

    r = client.post("/chat-message", json={"sessionId": session_id, "message": "Halo"})
    assert r.status_code == 500
    assert r.json()["error"] == "Failed to process message"
    assert len(client.app.state.session_store.get(session_id).history) == 2
