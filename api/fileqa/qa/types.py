from pydantic import BaseModel, Field
from typing import List, Optional

from ..settings import SEARCH_MAX_RESULTS


class TextChunk(BaseModel):
    text: str

class FileLite(BaseModel):
    name: str
    type: Optional[str] = None
    size: Optional[int] = None
    extractedText: Optional[str] = None
    chunks: Optional[List[TextChunk]] = None

class FileChunk(BaseModel):
    filename: str
    text: str
    score: Optional[float] = None

class SearchRequest(BaseModel):
    searchQuery: str
    files: List[FileLite]
    maxResults: int = Field(default=SEARCH_MAX_RESULTS, ge=1)

class SearchResponse(BaseModel):
    searchResults: List[FileChunk]

class AnswerRequest(BaseModel):
    question: str = Field(min_length=1)
    fileChunks: List[FileChunk]
    promptFormat: Optional[str] = None

class AnswerResponse(BaseModel):
    answer: str
    usage: Optional[int] = None

class UploadResponse(BaseModel):
    files: List[FileLite]

class Completion(BaseModel):
    text: str
    usage: Optional[int] = None
