from contextlib import asynccontextmanager
from typing import List, Optional
import json, logging, traceback

from fastapi import Depends, FastAPI, File, Request, UploadFile
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, PlainTextResponse, StreamingResponse

from .settings import CHUNK_TOKENS, CHUNK_OVERLAP, LLM_MODEL, MAX_FILES_LENGTH, SERVICE_NAME
from .qa.ingest import UnsupportedFileType, build_file
from .qa.llm import ChatClient
from .qa.prompts import build_prompt
from .qa.search import bm25
from .qa.types import AnswerRequest, AnswerResponse, SearchRequest, SearchResponse, UploadResponse

logger = logging.getLogger("uvicorn.error")

GENERIC_ERROR = "Something went wrong"

FIELD_MESSAGES = {
    "question": "question must be a non-empty string",
    "fileChunks": "fileChunks must be an array of {filename, text} objects",
    "promptFormat": "promptFormat must be a string",
    "searchQuery": "searchQuery must be a string",
    "files": "files must be an array of files",
    "maxResults": "maxResults must be a positive integer",
}


def validation_message(errors) -> str:
    for err in errors:
        loc = [p for p in err.get("loc", ()) if p != "body"]
        if loc and loc[0] in FIELD_MESSAGES:
            return FIELD_MESSAGES[loc[0]]
    return "request body must be a JSON object"

def sse_event(event: str, data) -> str:
    payload = data if isinstance(data, str) else json.dumps(data, ensure_ascii=False)
    return f"event: {event}\ndata: {payload}\n\n"

def get_llm(request: Request) -> ChatClient:
    return request.app.state.llm


def create_app(llm: Optional[ChatClient] = None) -> FastAPI:
    """Build the API. Without ``llm`` the provider client is created from
    settings at startup, which fails when ``OPENAI_API_KEY`` is missing."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if app.state.llm is None:
            app.state.llm = ChatClient.from_settings()
        yield

    app = FastAPI(title="File Q&A", version="1.0.0", lifespan=lifespan)
    app.state.llm = llm

    @app.exception_handler(RequestValidationError)
    async def on_validation_error(request: Request, exc: RequestValidationError):
        message = validation_message(exc.errors())
        logger.info(f"{request.url.path} rejected: {message}")
        return JSONResponse(status_code=400, content={"error": message})

    @app.get("/.well-known/ready")
    def ready():
        return PlainTextResponse("Ready", 200)

    @app.get("/meta")
    def meta():
        return {
            "service": SERVICE_NAME,
            "status": "Ready",
            "model": LLM_MODEL,
            "max_files_length": MAX_FILES_LENGTH,
            "chunk_tokens": CHUNK_TOKENS,
            "overlap": CHUNK_OVERLAP,
        }

    @app.post("/files", response_model=UploadResponse)
    async def upload_files(files: List[UploadFile] = File(...)):
        out = []
        for f in files:
            blob = await f.read()
            try:
                out.append(build_file(f.filename, f.content_type, blob, CHUNK_TOKENS, CHUNK_OVERLAP))
            except UnsupportedFileType as e:
                return JSONResponse(status_code=400, content={"error": str(e)})
            except Exception:
                logger.error(traceback.format_exc())
                return JSONResponse(status_code=500, content={"error": f"Could not read {f.filename}"})
        logger.info(f"/files extracted={len(out)} chunks={sum(len(x.chunks or []) for x in out)}")
        return UploadResponse(files=out)

    @app.post("/search", response_model=SearchResponse)
    def search(body: SearchRequest):
        results = bm25(body.searchQuery, body.files, body.maxResults, CHUNK_TOKENS, CHUNK_OVERLAP)
        logger.info(f"/search files={len(body.files)} max_results={body.maxResults} hits={len(results)}")
        return SearchResponse(searchResults=results)

    @app.post("/answer", response_model=AnswerResponse)
    def answer(body: AnswerRequest, llm: ChatClient = Depends(get_llm)):
        prompt = build_prompt(body.question, body.fileChunks, body.promptFormat)
        logger.info(f"/answer chunks={len(body.fileChunks)} prompt_chars={len(prompt)}")
        try:
            result = llm.complete(prompt)
        except Exception:
            logger.error(traceback.format_exc())
            return JSONResponse(status_code=500, content={"error": GENERIC_ERROR})
        logger.info(f"/answer usage={result.usage}")
        return AnswerResponse(answer=result.text, usage=result.usage)

    @app.post("/answer-stream")
    async def answer_stream(body: AnswerRequest, llm: ChatClient = Depends(get_llm)):
        prompt = build_prompt(body.question, body.fileChunks, body.promptFormat)
        logger.info(f"/answer-stream chunks={len(body.fileChunks)} prompt_chars={len(prompt)}")

        async def gen():
            try:
                async for text in llm.stream(prompt):
                    yield sse_event("token", {"text": text})
                yield sse_event("done", {})
            except Exception:
                logger.error(traceback.format_exc())
                yield sse_event("error", {"message": GENERIC_ERROR})

        headers = {"Cache-Control": "no-cache", "X-Accel-Buffering": "no"}
        return StreamingResponse(gen(), media_type="text/event-stream", headers=headers)

    return app


app = create_app()
