import os

from dotenv import load_dotenv

load_dotenv()

OPENAI_API_KEY = os.getenv("OPENAI_API_KEY")
OPENAI_API_BASE = os.getenv("OPENAI_API_BASE", "https://api.openai.com/v1")
LLM_MODEL = os.getenv("LLM_MODEL", "gpt-3.5-turbo")
LLM_TEMPERATURE = float(os.getenv("LLM_TEMPERATURE", "0"))
LLM_MAX_TOKENS = int(os.getenv("LLM_MAX_TOKENS", "800"))

# 2000 tokens at roughly 3 chars per token
MAX_FILES_LENGTH = int(os.getenv("MAX_FILES_LENGTH", str(2000 * 3)))

CHUNK_TOKENS = int(os.getenv("CHUNK_TOKENS", "200"))
CHUNK_OVERLAP = int(os.getenv("CHUNK_OVERLAP", "20"))
SEARCH_MAX_RESULTS = int(os.getenv("SEARCH_MAX_RESULTS", "10"))

SERVICE_NAME = "fileqa-api"
