from fastapi.testclient import TestClient
from io import BytesIO
from reportlab.pdfgen import canvas
from reportlab.lib.pagesizes import letter
import httpx
import json

from fileqa.main import create_app
from fileqa.qa.llm import ChatClient


def _make_pdf_bytes(text: str) -> bytes:
    buf = BytesIO()
    c = canvas.Canvas(buf, pagesize=letter)
    width, height = letter
    c.setFont("Helvetica", 12)
    c.drawString(72, height - 72, text)
    c.save()
    buf.seek(0)
    return buf.read()


def test_upload_search_answer():
    prompts = []

    def provider(request):
        body = json.loads(request.content)
        prompts.append(body["messages"][1]["content"])
        return httpx.Response(200, json={
            "choices": [{"message": {"content": "The flux capacitor, see flux.pdf"}}],
            "usage": {"total_tokens": 42},
        })

    llm = ChatClient("sk-test", transport=httpx.MockTransport(provider))
    client = TestClient(create_app(llm=llm))

    pdf_bytes = _make_pdf_bytes("The flux capacitor enables time travel in this test document.")
    files = [
        ("files", ("flux.pdf", pdf_bytes, "application/pdf")),
        ("files", ("menu.txt", b"Soup of the day is tomato.", "text/plain")),
    ]
    r = client.post("/files", files=files)
    assert r.status_code == 200
    uploaded = r.json()["files"]
    assert [f["name"] for f in uploaded] == ["flux.pdf", "menu.txt"]
    assert "flux capacitor" in uploaded[0]["extractedText"]
    assert uploaded[0]["chunks"]

    r2 = client.post("/search", json={"searchQuery": "What enables time travel?", "files": uploaded, "maxResults": 10})
    assert r2.status_code == 200
    results = r2.json()["searchResults"]
    assert results[0]["filename"] == "flux.pdf"

    r3 = client.post("/answer", json={"question": "What enables time travel?", "fileChunks": results})
    assert r3.status_code == 200
    assert r3.json() == {"answer": "The flux capacitor, see flux.pdf", "usage": 42}
    assert '###\n"flux.pdf"\n' in prompts[0]


def test_search_chunks_extracted_text_on_the_fly():
    client = TestClient(create_app(llm=ChatClient("sk-test")))
    files = [{"name": "plain.txt", "extractedText": "Tomato soup is served on Mondays."}]
    r = client.post("/search", json={"searchQuery": "soup", "files": files})
    assert r.status_code == 200
    assert r.json()["searchResults"][0]["filename"] == "plain.txt"


def test_upload_rejects_unknown_type():
    client = TestClient(create_app(llm=ChatClient("sk-test")))
    r = client.post("/files", files={"files": ("image.png", b"\x89PNG", "image/png")})
    assert r.status_code == 400
    assert r.json() == {"error": "Unsupported file type: image.png"}
