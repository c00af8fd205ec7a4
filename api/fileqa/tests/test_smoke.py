import pytest
from fastapi.testclient import TestClient

from fileqa.main import create_app
from fileqa.qa.llm import ChatClient

client = TestClient(create_app(llm=ChatClient("test-key")))

def test_meta():
    r = client.get("/meta")
    assert r.status_code == 200
    assert r.json()["max_files_length"] == 6000

def test_ready():
    r = client.get("/.well-known/ready")
    assert r.status_code == 200
    assert r.text == "Ready"

def test_startup_requires_api_key(monkeypatch):
    monkeypatch.setattr("fileqa.settings.OPENAI_API_KEY", None)
    with pytest.raises(RuntimeError, match="OPENAI_API_KEY"):
        with TestClient(create_app()):
            pass

def test_startup_builds_client_from_settings(monkeypatch):
    monkeypatch.setattr("fileqa.settings.OPENAI_API_KEY", "sk-test")
    app = create_app()
    with TestClient(app):
        assert isinstance(app.state.llm, ChatClient)
        assert app.state.llm.api_key == "sk-test"

def test_meta_names_service():
    assert client.get("/meta").json()["service"] == "fileqa-api"
