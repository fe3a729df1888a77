from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Dict, List, Optional

from mathref.errors import MathIndexError, OutlineUnavailableError
from mathref.index.assembler import PageAssembler, PageAssemblerConfig
from mathref.index.catalog import MathIndex
from mathref.index.outline import MarkdownOutlineParser, OutlineProvider
from mathref.models.document import DocumentState, IndexStatus
from mathref.models.outline import DocumentOutline
from mathref.models.page import MarkdownPage
from mathref.resolver import PositionResolver
from mathref.server.settings import Settings
from mathref.server.sse import IndexEventBus
from mathref.storage import SQLiteIndexConfig, SQLiteIndexStore

logger = logging.getLogger(__name__)

IndexListener = Callable[[str], None]


def _now() -> datetime:
    return datetime.now(timezone.utc)


class IndexService:
    """Re-indexes documents on the event loop and publishes immutable page snapshots.

    One task runs per document at a time. A new request for the same document
    cancels the running one, and a generation counter keeps a late finisher
    from overwriting a newer page.
    """

    def __init__(
        self,
        settings: Settings,
        *,
        provider: OutlineProvider | None = None,
        index: MathIndex | None = None,
        store: SQLiteIndexStore | None = None,
        events: IndexEventBus | None = None,
    ) -> None:
        self.settings = settings
        self.vault_dir = Path(settings.vault_dir)
        self.provider = provider or MarkdownOutlineParser()
        self.index = index or MathIndex()
        self.resolver = PositionResolver(self.index)
        self.assembler = PageAssembler(PageAssemblerConfig(exclude_example=settings.exclude_example))
        if store is None and settings.persist_index and settings.sqlite_db_path is not None:
            store = SQLiteIndexStore(SQLiteIndexConfig(db_path=Path(settings.sqlite_db_path)))
        self.store = store
        if self.store is not None:
            self.store.initialize()
        self.events = events or IndexEventBus(heartbeat_interval=settings.sse_heartbeat_interval)

        self._tasks: Dict[str, asyncio.Task[Optional[MarkdownPage]]] = {}
        self._generations: Dict[str, int] = {}
        self._ready: Dict[str, asyncio.Event] = {}
        self._states: Dict[str, DocumentState] = {}
        self._pending_text: Dict[str, Optional[str]] = {}
        self._listeners: List[IndexListener] = []

    # ------------------------------------------------------------------ public API
    def request_reindex(self, path: str, text: str | None = None) -> asyncio.Task[Optional[MarkdownPage]]:
        """Schedule a rebuild of ``path``, superseding any rebuild in flight.

        ``text`` is the latest source; when omitted the file is read from the
        vault directory.
        """

        previous = self._tasks.get(path)
        if previous is not None and not previous.done():
            logger.debug("Superseding in-flight index of %s", path)
            previous.cancel()

        generation = self._generations.get(path, 0) + 1
        self._generations[path] = generation
        self._pending_text[path] = text
        self._set_state(path, IndexStatus.QUEUED, generation=generation)

        task = asyncio.create_task(self._run(path, text, generation), name=f"mathref-index:{path}")
        self._tasks[path] = task
        return task

    def notify_outline_ready(self, path: str) -> Optional[asyncio.Task[Optional[MarkdownPage]]]:
        """Retry a deferred document once its outline has been produced."""

        state = self._states.get(path)
        if state is None or state.status is not IndexStatus.DEFERRED:
            return None
        return self.request_reindex(path, self._pending_text.get(path))

    def load(self, path: str) -> Optional[MarkdownPage]:
        return self.index.load(path)

    def state(self, path: str) -> Optional[DocumentState]:
        return self._states.get(path)

    def states(self) -> List[DocumentState]:
        return [self._states[path] for path in sorted(self._states)]

    async def wait_for(self, path: str, timeout: float | None = None) -> MarkdownPage:
        """Wait until ``path`` has been indexed at least once.

        The wait only concerns this one document and can be cancelled; with a
        ``timeout`` it raises :class:`asyncio.TimeoutError`.
        """

        if timeout is None:
            return await self._wait_ready(path)
        return await asyncio.wait_for(self._wait_ready(path), timeout=timeout)

    def on_index_updated(self, listener: IndexListener) -> Callable[[], None]:
        """Register ``listener(path)``; returns a function that unregisters it."""

        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def remove(self, path: str) -> bool:
        task = self._tasks.pop(path, None)
        if task is not None and not task.done():
            task.cancel()
        self._states.pop(path, None)
        self._ready.pop(path, None)
        removed = self.index.remove(path)
        if self.store is not None:
            self.store.delete_page(path)
        return removed

    def restore(self) -> int:
        """Publish every page persisted in the SQLite store; returns the count."""

        if self.store is None:
            return 0
        restored = 0
        for path in self.store.iter_paths():
            page = self.store.load_page(path)
            if page is None:
                continue
            self._publish(page, generation=self._generations.get(path, 0), persist=False)
            restored += 1
        logger.info("Restored %s pages from %s", restored, self.store.config.db_path)
        return restored

    async def close(self) -> None:
        tasks = [task for task in self._tasks.values() if not task.done()]
        for task in tasks:
            task.cancel()
        for task in tasks:
            try:
                await task
            except asyncio.CancelledError:
                pass
        self._tasks.clear()
        self.events.close()
        if self.store is not None:
            self.store.close()

    async def _wait_ready(self, path: str) -> MarkdownPage:
        while True:
            page = self.index.load(path)
            if page is not None:
                return page
            event = self._ready.setdefault(path, asyncio.Event())
            if event.is_set():
                # Published, then removed before this waiter woke up.
                self._ready.pop(path, None)
                continue
            await event.wait()

    # ------------------------------------------------------------------ workers
    async def _run(self, path: str, text: str | None, generation: int) -> Optional[MarkdownPage]:
        self._set_state(path, IndexStatus.INDEXING, generation=generation)
        try:
            source = text if text is not None else await asyncio.to_thread(self._read_source, path)
            outline = self._outline(path, source)
            attempts = 0
            while outline is None:
                attempts += 1
                if attempts > self.settings.outline_max_retries:
                    logger.info("Outline for %s still unavailable; waiting for the next update", path)
                    self._set_state(path, IndexStatus.DEFERRED, generation=generation, attempts=attempts)
                    return None
                self._set_state(path, IndexStatus.DEFERRED, generation=generation, attempts=attempts)
                await asyncio.sleep(self.settings.outline_retry_seconds)
                outline = self._outline(path, source)

            page = self.assembler.build(path, source, outline)
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            logger.exception("Indexing %s failed", path)
            if self._generations.get(path) == generation:
                self._set_state(path, IndexStatus.FAILED, generation=generation, error=str(exc))
            return None

        if self._generations.get(path) != generation:
            logger.debug("Discarding stale index of %s (generation %s)", path, generation)
            return None
        self._publish(page, generation=generation, persist=True)
        return page

    def _publish(self, page: MarkdownPage, *, generation: int, persist: bool) -> None:
        self.index.publish(page)
        if persist and self.store is not None:
            self.store.upsert_page(page)
        self._set_state(
            page.path,
            IndexStatus.READY,
            generation=generation,
            block_count=len(page.blocks),
            equation_count=len(page.equation_blocks()),
        )
        self._ready.setdefault(page.path, asyncio.Event()).set()
        for listener in list(self._listeners):
            try:
                listener(page.path)
            except Exception:  # pragma: no cover
                logger.exception("index-updated listener failed for %s", page.path)
        self.events.publish("index-updated", {"path": page.path, "generation": generation})

    # ------------------------------------------------------------------ helpers
    def _outline(self, path: str, source: str) -> Optional[DocumentOutline]:
        try:
            return self.provider.get_outline(path, source)
        except OutlineUnavailableError as exc:
            logger.debug("%s", exc)
            return None

    def _read_source(self, path: str) -> str:
        root = self.vault_dir.resolve()
        target = (root / path).resolve()
        if not target.is_relative_to(root):
            raise MathIndexError(f"{path} is outside the vault {root}")
        return target.read_text(encoding="utf-8")

    def _set_state(
        self,
        path: str,
        status: IndexStatus,
        *,
        generation: int,
        attempts: int = 0,
        error: str | None = None,
        block_count: int | None = None,
        equation_count: int | None = None,
    ) -> None:
        previous = self._states.get(path)
        self._states[path] = DocumentState(
            path=path,
            status=status,
            updated_at=_now(),
            generation=generation,
            attempts=attempts,
            error=error,
            block_count=block_count if block_count is not None else (previous.block_count if previous else 0),
            equation_count=equation_count
            if equation_count is not None
            else (previous.equation_count if previous else 0),
        )


__all__ = ["IndexService", "IndexListener"]
