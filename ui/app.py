import os
import asyncio
from typing import List

import httpx
import streamlit as st

from fileqa.qa.prompts import DEFAULT_PROMPT_FORMAT
from fileqa.qa.types import FileLite
from fileqa.settings import SEARCH_MAX_RESULTS
from fileqa.ui.controller import Phase, QAController, display_text, source_files

# ----- Page setup -----
st.set_page_config(page_title="File Q&A", layout="wide")

API_BASE = os.getenv("API_BASE_URL", "http://localhost:8000")

if "files" not in st.session_state:
    st.session_state["files"] = []
if "controller" not in st.session_state:
    st.session_state["controller"] = QAController(API_BASE, max_results=SEARCH_MAX_RESULTS)

controller: QAController = st.session_state["controller"]
files: List[FileLite] = st.session_state["files"]

# ----- Sidebar: upload -----
with st.sidebar:
    st.header("Upload files")
    up_files = st.file_uploader("Select PDF, text or markdown files", type=["pdf", "txt", "md"],
                                accept_multiple_files=True)
    if up_files and st.button("Add files"):
        with st.spinner("Reading files..."):
            try:
                payload = [("files", (f.name, f.read(), f.type or "application/octet-stream")) for f in up_files]
                r = httpx.post(f"{API_BASE}/files", files=payload, timeout=300)
                if r.status_code == 200:
                    known = {f.name for f in files}
                    added = [FileLite(**x) for x in r.json()["files"] if x["name"] not in known]
                    st.session_state["files"] = files + added
                    files = st.session_state["files"]
                    st.success(f"Added {len(added)} file(s)")
                else:
                    st.error(f"{r.status_code} - {r.text}")
            except httpx.ConnectError:
                st.error("API is not reachable. Wait a few seconds and retry. "
                         "If you run UI outside Docker, set API_BASE_URL=http://localhost:8000")

    st.divider()
    for f in files:
        st.write(f"📄 {f.name}")
    if files and st.button("Clear files"):
        st.session_state["files"] = []
        st.rerun()

# ----- Q&A -----
st.title("📄 File Q&A")
st.write("Ask a question based on the content of your files:")

with st.expander("Advanced options"):
    prompt_format = st.text_area("Prompt format:", value=DEFAULT_PROMPT_FORMAT, height=250)

question = st.text_input("Your question", placeholder="e.g. What were the key takeaways from the Q1 planning meeting?")

# asyncio.run blocks this run, so the spinner is the loading indicator
if st.button("Ask question", type="primary"):
    with st.spinner("Answering question..."):
        asyncio.run(controller.ask(question, files, prompt_format))

state = controller.state
if state.phase is Phase.ERROR and state.error:
    st.error(state.error)

if state.has_asked_question:
    text = display_text(state)
    if text:
        st.markdown(text)
    sources = source_files(files, state.answer)
    if sources:
        st.markdown("### Sources")
        for i, f in enumerate(sources, 1):
            st.markdown(f"{i}. {f.name}")
    if state.usage is not None:
        st.caption(f"Tokens used: {state.usage}")
