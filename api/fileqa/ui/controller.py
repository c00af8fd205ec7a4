"""Question flow behind the Streamlit page.

Kept free of Streamlit so it can be driven from tests: the page calls
``QAController.ask`` and renders whatever ``AnswerState`` it ends up in.
"""

import logging
from dataclasses import dataclass, replace
from enum import Enum
from typing import List, Optional, Sequence

import httpx

from ..qa.types import FileLite

logger = logging.getLogger(__name__)

ASK_A_QUESTION = "Please ask a question."
UPLOAD_FILES_FIRST = "Please upload files before asking a question."
SOMETHING_WENT_WRONG = "Sorry, something went wrong!"
CURSOR = "  |"


class Phase(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    ERROR = "error"
    DONE = "done"


@dataclass(frozen=True)
class AnswerState:
    phase: Phase = Phase.IDLE
    answer: str = ""
    error: str = ""
    usage: Optional[int] = None
    has_asked_question: bool = False


def display_text(state: AnswerState) -> str:
    if state.phase is Phase.LOADING:
        return f"{state.answer}{CURSOR}"
    return state.answer

def source_files(files: Sequence[FileLite], answer: str) -> List[FileLite]:
    # Plain substring test: "report.pdf" also matches inside "prereport.pdf".
    text = answer.lower()
    return [f for f in files if f.name.lower() in text]

def _describe(resp: httpx.Response) -> str:
    try:
        detail = resp.json().get("error")
    except (ValueError, AttributeError):
        detail = None
    return f"{SOMETHING_WENT_WRONG}\n{detail or f'HTTP {resp.status_code}'}"


class QAController:
    """Runs search then answer against the API for one session.

    While a question is in flight the state stays ``LOADING`` and further
    ``ask`` calls return immediately without touching the network.
    """

    def __init__(self, api_base: str, transport=None, max_results: int = 10):
        self.api_base = api_base.rstrip("/")
        self.max_results = max_results
        self._transport = transport
        self.state = AnswerState()

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(base_url=self.api_base, timeout=None, transport=self._transport)

    def _fail(self, message: str) -> AnswerState:
        self.state = replace(self.state, phase=Phase.ERROR, error=message)
        return self.state

    async def ask(self, question: str, files: Sequence[FileLite],
                  prompt_format: Optional[str] = None) -> AnswerState:
        if self.state.phase is Phase.LOADING:
            return self.state

        self.state = replace(self.state, answer="", usage=None)
        if not question:
            return self._fail(ASK_A_QUESTION)
        if not files:
            return self._fail(UPLOAD_FILES_FIRST)

        self.state = replace(self.state, phase=Phase.LOADING, error="")
        try:
            return await self._run(question, files, prompt_format)
        finally:
            # never leave a session stuck behind the in-flight guard
            if self.state.phase is Phase.LOADING:
                self._fail(SOMETHING_WENT_WRONG)

    async def _run(self, question, files, prompt_format) -> AnswerState:
        file_payload = [f.model_dump(exclude_none=True) for f in files]

        async with self._client() as client:
            try:
                resp = await client.post("/search", json={
                    "searchQuery": question,
                    "files": file_payload,
                    "maxResults": self.max_results,
                })
            except httpx.HTTPError as e:
                logger.error(f"search failed: {e!r}")
                return self._fail(f"{SOMETHING_WENT_WRONG}\n{e}")
            if resp.status_code != 200:
                logger.error(f"search failed: {resp.status_code} {resp.text}")
                return self._fail(_describe(resp))
            try:
                results = resp.json()["searchResults"]
                if not isinstance(results, list):
                    raise TypeError("searchResults is not a list")
            except (ValueError, KeyError, TypeError) as e:
                logger.error(f"search returned an unusable body: {e!r}")
                return self._fail(SOMETHING_WENT_WRONG)

            self.state = replace(self.state, has_asked_question=True)

            body = {"question": question, "fileChunks": results}
            if prompt_format is not None:
                body["promptFormat"] = prompt_format
            try:
                resp = await client.post("/answer", json=body)
            except httpx.HTTPError as e:
                logger.error(f"answer failed: {e!r}")
                return self._fail(f"{SOMETHING_WENT_WRONG}\n{e}")
            if resp.status_code != 200:
                logger.error(f"answer failed: {resp.status_code} {resp.text}")
                return self._fail(_describe(resp))

        try:
            data = resp.json()
            answer = data["answer"] or ""
            usage = data.get("usage")
        except (ValueError, KeyError, TypeError, AttributeError) as e:
            logger.error(f"answer returned an unusable body: {e!r}")
            return self._fail(SOMETHING_WENT_WRONG)
        self.state = replace(self.state, phase=Phase.DONE, answer=answer, usage=usage)
        return self.state
