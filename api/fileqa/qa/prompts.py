from typing import Optional, Sequence

from ..settings import MAX_FILES_LENGTH
from .types import FileChunk

NOT_FOUND = "I couldn't find the answer to that question in your files."
NOT_A_QUESTION = "That's not a valid question."

DEFAULT_PROMPT_FORMAT = (
    "Given a question, try to answer it using the content of the file extracts below, "
    f"and if you cannot answer, or find a relevant file, just output \"{NOT_FOUND}\".\n\n"
    "If the answer is not contained in the files or if there are no file extracts, "
    f"respond with \"{NOT_FOUND}\" If the question is not actually a question, "
    f"respond with \"{NOT_A_QUESTION}\"\n\n"
    "In the cases where you can find the answer, first give the answer. Then explain how you "
    "found the answer from the source or sources, and use the exact filenames of the source "
    "files you mention. Do not make up the names of any other files other than those mentioned "
    "in the files context. Give the answer in markdown format."
    "Use the following format:\n\n"
    "Question: <question>\n\n"
    "Files:\n<###\n\"filename 1\"\nfile text>\n<###\n\"filename 2\"\nfile text>...\n\n"
    f"Answer: <answer or \"{NOT_FOUND}\" or \"{NOT_A_QUESTION}\">\n\n"
)


def render_files(chunks: Sequence[FileChunk], max_length: int = MAX_FILES_LENGTH) -> str:
    # Cut is by characters, so the last chunk may end mid-text.
    blocks = [f"###\n\"{c.filename}\"\n{c.text}" for c in chunks]
    return "\n".join(blocks)[:max_length]

def build_prompt(
    question: str,
    chunks: Sequence[FileChunk],
    prompt_format: Optional[str] = None,
    max_length: int = MAX_FILES_LENGTH,
) -> str:
    files_blob = render_files(chunks, max_length)
    head = prompt_format or DEFAULT_PROMPT_FORMAT
    return f"{head}Question: {question}\n\nFiles:\n{files_blob}\n\nAnswer:"
