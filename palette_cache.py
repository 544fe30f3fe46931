import asyncio
import logging

import config
import quantizer
from quantizer import ArtworkDecodeError
from tmdb_client import FetchError

logger = logging.getLogger("mood_movies.palette")


class PaletteCache:
    """Session-wide palettes keyed by movie id, computed at most once each.

    The first caller for an id starts the computation; concurrent callers
    await the same task. Resolved palettes, including the empty palette of a
    failed extraction, are never replaced.
    """

    def __init__(self, k=None):
        self.k = config.PALETTE_SIZE if k is None else k
        if self.k < 1:
            raise ValueError(f"k must be at least 1, got {self.k}")
        self._palettes = {}
        self._pending = {}
        self._errors = {}

    def __len__(self):
        return len(self._palettes)

    def __contains__(self, movie_id):
        return movie_id in self._palettes

    def status(self, movie_id):
        if movie_id in self._errors:
            return "failed"
        if movie_id in self._palettes:
            return "ready"
        if movie_id in self._pending:
            return "pending"
        return "missing"

    def error(self, movie_id):
        return self._errors.get(movie_id)

    async def get_palette(self, movie_id, artwork_loader):
        if movie_id in self._palettes:
            return self._palettes[movie_id]
        task = self._pending.get(movie_id)
        if task is None or task.cancelled():
            task = asyncio.ensure_future(self._compute(movie_id, artwork_loader))
            self._pending[movie_id] = task
        # a cancelled waiter must not cancel the shared computation
        return await asyncio.shield(task)

    async def _compute(self, movie_id, artwork_loader):
        try:
            try:
                if artwork_loader is None:
                    raise ArtworkDecodeError("Movie has no artwork")
                data = await artwork_loader()
                palette = await asyncio.to_thread(self._quantize, data)
            except (FetchError, ArtworkDecodeError) as exc:
                logger.warning("Palette for movie %s unavailable: %s", movie_id, exc)
                self._errors[movie_id] = exc
                palette = ()
            self._palettes[movie_id] = palette
            logger.debug("Palette for movie %s resolved with %s colors", movie_id, len(palette))
            return palette
        finally:
            self._pending.pop(movie_id, None)

    def _quantize(self, data):
        return quantizer.extract_palette(quantizer.decode_artwork(data), self.k)
