import asyncio
import unittest
from unittest import mock

import requests

import moods
import tmdb_client
from tmdb_client import CatalogItem, FetchError


def fake_response(status_code=200, payload=None, content=b""):
    response = mock.Mock()
    response.status_code = status_code
    response.content = content
    if isinstance(payload, Exception):
        response.json.side_effect = payload
    else:
        response.json.return_value = payload
    return response


class CatalogItemTests(unittest.TestCase):
    def test_from_api_normalizes_optional_fields(self):
        item = CatalogItem.from_api(
            {
                "id": 129,
                "title": "Spirited Away",
                "poster_path": "",
                "backdrop_path": "/bd.jpg",
                "vote_average": 8.5,
                "vote_count": 16000,
                "release_date": "2001-07-20",
            }
        )
        self.assertIsNone(item.poster_path)
        self.assertEqual(item.backdrop_path, "/bd.jpg")
        self.assertEqual(item.overview, "")
        self.assertEqual(item.year, "2001")

    def test_from_api_requires_id(self):
        with self.assertRaises(ValueError):
            CatalogItem.from_api({"title": "No id"})

    def test_missing_release_date(self):
        item = CatalogItem.from_api({"id": 1, "title": "x", "release_date": ""})
        self.assertIsNone(item.release_date)
        self.assertIsNone(item.year)


class DiscoverTests(unittest.TestCase):
    @mock.patch("tmdb_client.requests.get")
    def test_discover_params(self, get):
        get.return_value = fake_response(payload={"results": [{"id": 1}]})
        results = tmdb_client.discover_movies(
            "key", moods.criteria_for("ghibli"), "vote_count.desc", 2, timeout=3
        )
        self.assertEqual(results, [{"id": 1}])
        url = get.call_args.args[0]
        params = get.call_args.kwargs["params"]
        self.assertTrue(url.endswith("/discover/movie"))
        self.assertEqual(params["with_companies"], "10342")
        self.assertEqual(params["include_adult"], "false")
        self.assertEqual(params["sort_by"], "vote_count.desc")
        self.assertEqual(params["page"], 2)
        self.assertEqual(get.call_args.kwargs["timeout"], 3)

    @mock.patch("tmdb_client.requests.get")
    def test_missing_results_is_empty(self, get):
        get.return_value = fake_response(payload={"page": 9})
        self.assertEqual(
            tmdb_client.discover_movies("key", moods.criteria_for("cozy"), "popularity.desc", 9),
            [],
        )

    def test_page_must_be_positive(self):
        for page in (0, -1, "2", True):
            with self.assertRaises(ValueError):
                tmdb_client.discover_movies("key", moods.criteria_for("cozy"), "popularity.desc", page)

    @mock.patch("tmdb_client.requests.get")
    def test_errors_become_fetch_error(self, get):
        criteria = moods.criteria_for("cozy")
        cases = [
            requests.Timeout("slow"),
            requests.ConnectionError("down"),
        ]
        for exc in cases:
            get.side_effect = exc
            with self.assertRaises(FetchError):
                tmdb_client.discover_movies("key", criteria, "popularity.desc", 1)

        get.side_effect = None
        for response in [
            fake_response(status_code=401, payload={}),
            fake_response(payload=ValueError("bad json")),
            fake_response(payload=["not", "a", "dict"]),
            fake_response(payload={"results": "nope"}),
        ]:
            get.return_value = response
            with self.assertRaises(FetchError):
                tmdb_client.discover_movies("key", criteria, "popularity.desc", 1)


class FeaturedTests(unittest.TestCase):
    def setUp(self):
        tmdb_client.get_featured_movies.clear()

    @mock.patch("tmdb_client.requests.get")
    def test_featured_uses_first_eight(self, get):
        results = [{"id": i, "title": f"Movie {i}"} for i in range(20)]
        get.return_value = fake_response(payload={"results": results})
        featured = tmdb_client.get_featured_movies("featured-key")
        self.assertEqual([movie.id for movie in featured], list(range(8)))
        self.assertTrue(get.call_args.args[0].endswith("/movie/popular"))
        self.assertEqual(get.call_args.kwargs["params"]["include_adult"], "false")


class ArtworkTests(unittest.TestCase):
    def test_image_url(self):
        self.assertEqual(
            tmdb_client.get_image_url("/a.jpg"), "https://image.tmdb.org/t/p/w500/a.jpg"
        )
        self.assertIsNone(tmdb_client.get_image_url(None))

    def test_backdrop_preferred(self):
        both = CatalogItem(id=1, title="x", poster_path="/p.jpg", backdrop_path="/b.jpg")
        poster_only = CatalogItem(id=2, title="y", poster_path="/p.jpg")
        self.assertEqual(tmdb_client.artwork_path(both), "/b.jpg")
        self.assertEqual(tmdb_client.artwork_path(poster_only), "/p.jpg")
        self.assertIsNone(tmdb_client.artwork_loader(CatalogItem(id=3, title="z")))

    @mock.patch("tmdb_client.requests.get")
    def test_artwork_loader_downloads_bytes(self, get):
        get.return_value = fake_response(content=b"image-bytes")
        loader = tmdb_client.artwork_loader(
            CatalogItem(id=1, title="x", poster_path="/p.jpg", backdrop_path="/b.jpg")
        )
        self.assertEqual(asyncio.run(loader()), b"image-bytes")
        self.assertEqual(get.call_args.args[0], "https://image.tmdb.org/t/p/w500/b.jpg")

    def test_find_item_searches_every_group(self):
        grid = [CatalogItem(id=1, title="Grid")]
        featured = [CatalogItem(id=2, title="Featured"), CatalogItem(id=1, title="Dup")]
        self.assertEqual(tmdb_client.find_item(2, grid, featured).title, "Featured")
        self.assertEqual(tmdb_client.find_item(1, grid, featured).title, "Grid")
        self.assertIsNone(tmdb_client.find_item(3, grid, featured))
        self.assertIsNone(tmdb_client.find_item(None, grid, featured))

    @mock.patch("tmdb_client.requests.get")
    def test_image_download_failure(self, get):
        get.return_value = fake_response(status_code=404)
        with self.assertRaises(FetchError):
            tmdb_client.download_image("https://image.tmdb.org/t/p/w500/x.jpg")


if __name__ == "__main__":
    unittest.main()
