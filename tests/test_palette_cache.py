import asyncio
import io
import unittest

import numpy as np
from PIL import Image

from palette_cache import PaletteCache
from quantizer import ColorSwatch
from tmdb_client import FetchError


def png_bytes(color):
    buffer = io.BytesIO()
    Image.fromarray(np.full((10, 10, 3), color, dtype=np.uint8)).save(buffer, format="PNG")
    return buffer.getvalue()


class CountingLoader:
    def __init__(self, data=None, error=None, gate=None):
        self.data = data
        self.error = error
        self.gate = gate
        self.calls = 0

    async def __call__(self):
        self.calls += 1
        if self.gate is not None:
            await self.gate.wait()
        if self.error is not None:
            raise self.error
        return self.data


class PaletteCacheTests(unittest.IsolatedAsyncioTestCase):
    async def test_second_request_is_memoized(self):
        cache = PaletteCache()
        loader = CountingLoader(png_bytes((255, 0, 0)))
        first = await cache.get_palette(129, loader)
        second = await cache.get_palette(129, loader)
        self.assertEqual(first, (ColorSwatch(255, 0, 0),))
        self.assertIs(first, second)
        self.assertEqual(loader.calls, 1)
        self.assertEqual(cache.status(129), "ready")
        self.assertIn(129, cache)

    async def test_concurrent_requests_share_one_computation(self):
        cache = PaletteCache()
        gate = asyncio.Event()
        loader = CountingLoader(png_bytes((0, 0, 255)), gate=gate)
        waiters = [asyncio.create_task(cache.get_palette(7, loader)) for _ in range(3)]
        await asyncio.sleep(0)
        self.assertEqual(cache.status(7), "pending")
        gate.set()
        results = await asyncio.gather(*waiters)
        self.assertEqual(loader.calls, 1)
        self.assertTrue(all(result is results[0] for result in results))
        self.assertEqual(results[0], (ColorSwatch(0, 0, 255),))

    async def test_failed_download_caches_empty_palette(self):
        cache = PaletteCache()
        loader = CountingLoader(error=FetchError("Image request failed: 404"))
        self.assertEqual(await cache.get_palette(3, loader), ())
        self.assertEqual(await cache.get_palette(3, loader), ())
        self.assertEqual(loader.calls, 1)
        self.assertEqual(cache.status(3), "failed")
        self.assertIsInstance(cache.error(3), FetchError)

    async def test_undecodable_artwork_is_empty(self):
        cache = PaletteCache()
        self.assertEqual(await cache.get_palette(4, CountingLoader(b"not an image")), ())
        self.assertEqual(cache.status(4), "failed")

    async def test_missing_artwork_loader(self):
        cache = PaletteCache()
        self.assertEqual(await cache.get_palette(5, None), ())
        self.assertEqual(cache.status(5), "failed")

    async def test_ids_are_independent(self):
        cache = PaletteCache(k=3)
        red = await cache.get_palette(1, CountingLoader(png_bytes((255, 0, 0))))
        green = await cache.get_palette(2, CountingLoader(png_bytes((0, 255, 0))))
        self.assertNotEqual(red, green)
        self.assertEqual(len(cache), 2)
        self.assertEqual(cache.status(99), "missing")

    def test_palette_size_is_not_replaced_by_default(self):
        with self.assertRaises(ValueError):
            PaletteCache(k=0)
        self.assertEqual(PaletteCache(k=2).k, 2)
        self.assertEqual(PaletteCache().k, 5)


if __name__ == "__main__":
    unittest.main()
