"""Incremental, generation-guarded page retrieval for a mood session.

A session is the pair (mood, sort order). Every call to ``start_session`` bumps
the generation; a page that completes after its session was replaced is dropped
without touching the new session's state. ``FetchState`` values are immutable,
so a failed request leaves the caller's state exactly as it was.
"""

import asyncio
import dataclasses
import logging

import config
import moods
import tmdb_client

logger = logging.getLogger("mood_movies.fetcher")


@dataclasses.dataclass(frozen=True)
class FetchState:
    mood: str
    sort_by: str
    current_page: int = 1
    items: tuple = ()
    exhausted: bool = False
    generation: int = 0


class PaginatedFetcher:
    def __init__(self, api_key, discover=None, timeout=None):
        self.api_key = api_key
        self.timeout = config.REQUEST_TIMEOUT if timeout is None else timeout
        if self.timeout <= 0:
            raise ValueError(f"timeout must be positive, got {self.timeout}")
        self._discover = discover or tmdb_client.discover_movies
        self._generation = 0
        self.state = None

    @property
    def generation(self):
        return self._generation

    def start_session(self, mood, sort_by=moods.DEFAULT_SORT):
        if sort_by not in moods.SORT_OPTIONS:
            raise ValueError(f"Unknown sort order: {sort_by!r}")
        self._generation += 1
        self.state = FetchState(
            mood=moods.normalize_selector(mood),
            sort_by=sort_by,
            generation=self._generation,
        )
        logger.info(
            "Started session mood=%s sort=%s generation=%s",
            self.state.mood,
            sort_by,
            self._generation,
        )
        return self.state

    def is_current(self, state):
        # only the latest snapshot of the latest session may advance
        return state is not None and state is self.state

    async def fetch_next_page(self, state):
        """Fetch ``state.current_page`` and return the advanced state.

        Raises FetchError on failure; ``state`` itself is never modified.
        Superseded snapshots, and requests that finish after their session
        was replaced, leave the active state alone and return it.
        """
        if not self.is_current(state):
            logger.debug(
                "Ignored fetch for superseded state (generation %s, page %s)",
                state.generation,
                state.current_page,
            )
            return self.state
        if state.exhausted:
            return state

        criteria = moods.criteria_for(state.mood)
        try:
            results = await asyncio.to_thread(
                self._discover,
                self.api_key,
                criteria,
                state.sort_by,
                state.current_page,
                self.timeout,
            )
        except tmdb_client.FetchError as exc:
            if self.is_current(state):
                raise
            logger.debug(
                "Dropped failure of stale page %s (generation %s): %s",
                state.current_page,
                state.generation,
                exc,
            )
            return self.state
        if not self.is_current(state):
            logger.debug(
                "Discarded page %s for stale generation %s (current %s)",
                state.current_page,
                state.generation,
                self._generation,
            )
            return self.state

        items = tmdb_client.parse_items(results)
        if not items:
            logger.info("Mood %s exhausted at page %s", state.mood, state.current_page)
            new_state = dataclasses.replace(state, exhausted=True)
        else:
            new_state = dataclasses.replace(
                state,
                items=_merge(state.items, items),
                current_page=state.current_page + 1,
            )
            logger.info(
                "Fetched page %s for mood %s (%s results, %s total)",
                state.current_page,
                state.mood,
                len(items),
                len(new_state.items),
            )
        self.state = new_state
        return new_state


def _merge(existing, incoming):
    seen = {item.id for item in existing}
    merged = list(existing)
    for item in incoming:
        if item.id in seen:
            continue
        seen.add(item.id)
        merged.append(item)
    return tuple(merged)
