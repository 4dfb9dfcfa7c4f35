from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path
from typing import Protocol

import structlog
from pydantic import TypeAdapter

from threadanswer.markdown import markdown_to_text
from threadanswer.schemas.answer import SearchResult, Thread

logger = structlog.get_logger()

_THREAD_LIST = TypeAdapter(list[Thread])


class ThreadStore(Protocol):
    async def search(self, query: str, top_k: int) -> list[SearchResult]: ...

    async def fetch_thread(self, thread_id: str) -> Thread | None: ...


class InMemoryThreadStore:
    """Thread search and lookup over a fixed in-process set of threads."""

    def __init__(self, threads: Iterable[Thread] = ()) -> None:
        self._threads: dict[str, Thread] = {thread.id: thread for thread in threads}
        self._search_text: dict[str, str] = {
            thread.id: (thread.body_text or markdown_to_text(thread.body_md)).lower()
            for thread in self._threads.values()
        }

    def __len__(self) -> int:
        return len(self._threads)

    @classmethod
    def from_json_file(cls, path: str | Path) -> InMemoryThreadStore:
        """Load threads from a JSON list; camelCase (``bodyMd``) and snake_case keys both work.

        A missing file yields an empty store. Malformed content raises
        ``pydantic.ValidationError``.
        """
        file_path = Path(path)
        if not file_path.is_file():
            logger.warning("threads_file_missing", path=str(file_path))
            return cls()
        threads = _THREAD_LIST.validate_json(file_path.read_bytes())
        logger.info("threads_loaded", path=str(file_path), count=len(threads))
        return cls(threads)

    async def search(self, query: str, top_k: int) -> list[SearchResult]:
        """Case-insensitive substring match on title and body, newest first."""
        needle = query.strip().lower()
        if not needle:
            return []
        matches = [
            thread
            for thread in self._threads.values()
            if needle in thread.title.lower() or needle in self._search_text[thread.id]
        ]
        matches.sort(key=lambda thread: thread.created_at or "", reverse=True)
        return [SearchResult(id=thread.id, title=thread.title) for thread in matches[: max(0, top_k)]]

    async def fetch_thread(self, thread_id: str) -> Thread | None:
        return self._threads.get(thread_id)
