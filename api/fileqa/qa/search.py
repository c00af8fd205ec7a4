import math
from collections import Counter
from typing import List, Sequence, Tuple

from .ingest import file_chunks
from .types import FileChunk, FileLite
from .utils import words

K1 = 1.5
B = 0.75


def _candidates(files: Sequence[FileLite], max_tokens: int, overlap: int) -> List[Tuple[str, str]]:
    out = []
    for f in files:
        for text in file_chunks(f, max_tokens, overlap):
            out.append((f.name, text))
    return out

def bm25(query: str, files: Sequence[FileLite], top_k: int, max_tokens: int, overlap: int) -> List[FileChunk]:
    """Rank every chunk of ``files`` against ``query`` with Okapi BM25.

    Only chunks sharing at least one term with the query are returned, best
    first. Equal scores keep file/chunk order.
    """
    terms = set(words(query))
    candidates = _candidates(files, max_tokens, overlap)
    if not terms or not candidates:
        return []

    docs = [Counter(words(text)) for _, text in candidates]
    lengths = [sum(d.values()) for d in docs]
    avg_len = (sum(lengths) / len(lengths)) or 1.0
    n = len(docs)
    df = {t: sum(1 for d in docs if t in d) for t in terms}

    scored = []
    for i, d in enumerate(docs):
        score = 0.0
        for t in terms:
            tf = d.get(t, 0)
            if not tf:
                continue
            idf = math.log(1 + (n - df[t] + 0.5) / (df[t] + 0.5))
            score += idf * tf * (K1 + 1) / (tf + K1 * (1 - B + B * lengths[i] / avg_len))
        if score > 0:
            scored.append((score, i))

    # sorted() is stable, so ties stay in input order
    scored = sorted(scored, key=lambda x: -x[0])[:top_k]
    return [FileChunk(filename=candidates[i][0], text=candidates[i][1], score=round(s, 4)) for s, i in scored]
