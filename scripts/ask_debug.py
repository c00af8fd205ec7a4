#!/usr/bin/env python3
"""
Standalone debugger for files -> /files -> /search -> /answer against a running API.

Usage:
  python scripts/ask_debug.py --file docs/report.pdf --file notes.txt --question "What grew in Q1?"
"""

import argparse, asyncio, mimetypes, os, sys, time
import httpx
from dotenv import load_dotenv

from fileqa.qa.types import FileLite
from fileqa.ui.controller import Phase, QAController, source_files


def wait_ready(url: str, name: str, tries=30, sleep=2):
    for i in range(tries):
        try:
            r = httpx.get(url, timeout=3)
            if r.status_code == 200:
                print(f"[ok] {name} ready: {url}")
                return
        except httpx.HTTPError:
            pass
        time.sleep(sleep)
    raise RuntimeError(f"[fail] {name} not ready: {url}")


def main():
    load_dotenv()
    ap = argparse.ArgumentParser()
    ap.add_argument("--file", action="append", required=True, dest="files")
    ap.add_argument("--question", required=True)
    ap.add_argument("--max-results", type=int, default=10)
    args = ap.parse_args()

    api_base = os.getenv("API_BASE_URL", "http://localhost:8000")
    wait_ready(f"{api_base}/.well-known/ready", "api")

    # 1) Upload
    payload = []
    for path in args.files:
        if not os.path.exists(path):
            raise FileNotFoundError(f"File not found: {path}")
        ctype = mimetypes.guess_type(path)[0] or "application/octet-stream"
        with open(path, "rb") as fp:
            payload.append(("files", (os.path.basename(path), fp.read(), ctype)))
    r = httpx.post(f"{api_base}/files", files=payload, timeout=300)
    if r.status_code != 200:
        print(f"[error] upload failed: {r.status_code} {r.text}")
        sys.exit(2)
    files = [FileLite(**x) for x in r.json()["files"]]
    for f in files:
        print(f"[info] {f.name}: chars={len(f.extractedText or '')} chunks={len(f.chunks or [])}")

    # 2) Search + answer
    controller = QAController(api_base, max_results=args.max_results)
    t0 = time.perf_counter()
    state = asyncio.run(controller.ask(args.question, files))
    dt_ms = int((time.perf_counter() - t0) * 1000)
    if state.phase is not Phase.DONE:
        print(f"[error] {state.error}")
        sys.exit(3)

    print(f"[ok] latency_ms={dt_ms} usage={state.usage}")
    print(state.answer)
    sources = source_files(files, state.answer)
    if sources:
        print("[sources] " + ", ".join(f.name for f in sources))


if __name__ == "__main__":
    main()
