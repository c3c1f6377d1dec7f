# taskboard_client/search.py — Debounced task search
import asyncio
import logging
from typing import Awaitable, Callable, List, Optional

from taskboard_client.errors import TaskboardError
from taskboard_client.models import Task

logger = logging.getLogger("taskboard.client.search")

MIN_QUERY_LENGTH = 2


class DebouncedSearch:
    """Runs ``search_fn`` once input has been quiet for ``delay`` seconds.

    Every call to ``update`` cancels the pending search. Queries shorter than
    two characters (after stripping) clear the results without a request.
    """

    def __init__(
        self,
        search_fn: Callable[[str], Awaitable[List[Task]]],
        on_results: Callable[[List[Task]], None],
        delay: float = 0.3,
    ):
        self._search_fn = search_fn
        self._on_results = on_results
        self.delay = delay
        self.query = ""
        self.is_searching = False
        self._pending: Optional[asyncio.Task] = None

    def update(self, query: str) -> None:
        """Feed a new input value. Must be called from a running event loop."""
        self.query = query
        self.cancel()
        if len(query.strip()) >= MIN_QUERY_LENGTH:
            self.is_searching = True
            self._pending = asyncio.get_running_loop().create_task(self._run(query))
        else:
            self._on_results([])

    def cancel(self) -> None:
        if self._pending is not None and not self._pending.done():
            self._pending.cancel()
        self._pending = None
        self.is_searching = False

    async def wait(self) -> None:
        """Wait for the pending search, if any, to settle."""
        pending = self._pending
        if pending is None:
            return
        try:
            await pending
        except asyncio.CancelledError:
            if not pending.cancelled():
                raise

    async def _run(self, query: str) -> None:
        me = asyncio.current_task()
        try:
            await asyncio.sleep(self.delay)
            results = await self._search_fn(query)
        except TaskboardError as e:
            logger.error(f"Search failed: {e}")
            return
        finally:
            if self._pending is me:
                self.is_searching = False
        self._on_results(results)
