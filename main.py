#!/usr/bin/env python3
"""Upload a résumé, follow the analysis task and print structured suggestions.

Usage:
    python main.py cv.pdf --job "Senior backend engineer ..."            # poll + optimize
    python main.py cv.pdf --job-file jd.txt --stream                       # push channel
"""
import argparse
import asyncio
import logging
import os
import sys
from pathlib import Path
from typing import Optional
from config.cache import close_redis
from core.http import ApiClient
from core.polling import poll_task
from core.session_guard import get_session_guard
from core.suggestion_parser import parse
from model.api import LoginRequest
from model.events import StreamEvent
from model.suggestions import SuggestionSections
from model.task import TaskStatus
from service.auth_service import AuthService
from service.stream_consumer import StreamConsumer, StreamState
from service.task_client import TaskClient
from util.enums import Color
from util.errors import AppError
from util.logger import init_logger

logger = logging.getLogger("main")


class CollectingSink:
    """Prints progress and keeps the streamed text."""

    def __init__(self) -> None:
        self.chunks: list[str] = []
        self.result: Optional[str] = None
        self.error: Optional[AppError] = None

    def on_progress(self, event: StreamEvent) -> None:
        pct = event.progress_percent
        print(f"{Color.BLUE}… {pct if pct is not None else event.payload}%{Color.RESET}")

    def on_chunk(self, event: StreamEvent) -> None:
        self.chunks.append(event.payload)

    def on_result(self, event: StreamEvent) -> None:
        self.result = event.payload or "".join(self.chunks)

    def on_error(self, error: AppError) -> None:
        self.error = error


def _print_sections(sections: SuggestionSections) -> None:
    titles = (
        ("Advantages", sections.advantages),
        ("Weaknesses", sections.weaknesses),
        ("Improvements", sections.improvements),
    )
    for title, items in titles:
        print(f"{Color.BOLD}{title}{Color.RESET}")
        if items is None:
            print(f"  {Color.YELLOW}(not reported){Color.RESET}")
            continue
        for i, item in enumerate(items, start=1):
            print(f"  {i}. {item}")


async def _ensure_login(auth: AuthService) -> None:
    guard = get_session_guard()
    if await guard.restore():
        return
    username = os.getenv("RESUME_USERNAME")
    password = os.getenv("RESUME_PASSWORD")
    if not username or not password:
        raise SystemExit("No stored credential: set RESUME_USERNAME and RESUME_PASSWORD")
    await auth.login(LoginRequest(username=username, password=password))


async def _stream_suggestions(
    api: ApiClient, task_id: str, resume_id: str, job: str
) -> Optional[str]:
    consumer = StreamConsumer(api)
    sink = CollectingSink()
    sub = consumer.open(task_id, sink, resume_id=resume_id, job_description=job)
    state = await sub.wait()
    if state is StreamState.Failed or sink.error is not None:
        raise sink.error or AppError("Stream failed")
    return sink.result


async def run(args: argparse.Namespace) -> int:
    job = args.job or Path(args.job_file).read_text(encoding="utf-8")
    async with ApiClient() as api:
        auth = AuthService(api)
        tasks = TaskClient(api)
        try:
            await _ensure_login(auth)

            task = await tasks.submit(Path(args.resume))
            print(f"{Color.GREEN}Uploaded, task {task.taskId}{Color.RESET}")
            async for snap in poll_task(tasks, task.taskId):
                print(f"{Color.BLUE}{snap.status.value} {snap.progress}%{Color.RESET}")
                task = snap
            if task.status is TaskStatus.Failed or not task.resultRef:
                print(f"{Color.RED}Analysis failed: {task.errorDetail}{Color.RESET}")
                return 1

            if args.stream:
                text = await _stream_suggestions(api, task.taskId, task.resultRef, job)
            else:
                text = await tasks.request_optimization(task.resultRef, job)
        except AppError as e:
            logger.error("cli.failed err=%s msg=%s", type(e).__name__, e.message)
            print(f"{Color.RED}{e.message}{Color.RESET}", file=sys.stderr)
            return 1
        finally:
            await close_redis()

    _print_sections(parse(text or ""))
    return 0


def main() -> None:
    parser = argparse.ArgumentParser()
    parser.add_argument("resume", help="Path to the résumé file to upload")
    group = parser.add_mutually_exclusive_group(required=True)
    group.add_argument("--job", help="Job description text")
    group.add_argument("--job-file", dest="job_file", help="File holding the job description")
    parser.add_argument("--stream", action="store_true",
                        help="Receive suggestions over the push channel instead of one long call")
    args = parser.parse_args()

    init_logger()
    sys.exit(asyncio.run(run(args)))


if __name__ == "__main__":
    main()
