import io
import os
from typing import List

from pypdf import PdfReader

from .types import FileLite, TextChunk
from .utils import chunk_text

TEXT_EXTENSIONS = {".txt", ".md"}
SUPPORTED_EXTENSIONS = TEXT_EXTENSIONS | {".pdf"}


class UnsupportedFileType(ValueError):
    pass


def extract_pdf_text(blob: bytes) -> str:
    reader = PdfReader(io.BytesIO(blob))
    pages = []
    for page in reader.pages:
        pages.append(page.extract_text() or "")
    return "\n".join(pages)

def extract_text(filename: str, blob: bytes) -> str:
    ext = os.path.splitext(filename)[1].lower()
    if ext == ".pdf":
        return extract_pdf_text(blob)
    if ext in TEXT_EXTENSIONS:
        return blob.decode("utf-8", errors="replace")
    raise UnsupportedFileType(f"Unsupported file type: {filename}")

def build_file(filename: str, content_type: str, blob: bytes, max_tokens: int, overlap: int) -> FileLite:
    text = extract_text(filename, blob)
    segments = chunk_text(text, max_tokens, overlap) if text.strip() else []
    return FileLite(
        name=filename,
        type=content_type,
        size=len(blob),
        extractedText=text,
        chunks=[TextChunk(text=s) for s in segments],
    )

def file_chunks(f: FileLite, max_tokens: int, overlap: int) -> List[str]:
    """Chunk texts for a file, chunking ``extractedText`` when none were sent."""
    if f.chunks:
        return [c.text for c in f.chunks]
    if f.extractedText and f.extractedText.strip():
        return chunk_text(f.extractedText, max_tokens, overlap)
    return []
