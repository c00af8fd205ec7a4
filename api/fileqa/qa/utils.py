import re
from typing import List
import tiktoken

_WORD = re.compile(r"\w+")

def chunk_text(text: str, max_tokens: int, overlap: int) -> List[str]:
    enc = tiktoken.get_encoding("cl100k_base")
    toks = enc.encode(text)
    chunks = []
    i = 0
    while i < len(toks):
        window = toks[i:i+max_tokens]
        chunks.append(enc.decode(window))
        if i + max_tokens >= len(toks): break
        i += max_tokens - overlap
    return chunks

def words(text: str) -> List[str]:
    """Lower-cased word terms used for lexical matching."""
    return _WORD.findall(text.lower())
