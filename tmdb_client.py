import asyncio
import logging
from dataclasses import dataclass

import requests
import streamlit as st

import config


BASE_URL = "https://api.themoviedb.org/3"
IMAGE_BASE = "https://image.tmdb.org/t/p/w500"

logger = logging.getLogger("mood_movies.tmdb")


class FetchError(RuntimeError):
    """A catalog or image request failed; safe to retry."""


@dataclass(frozen=True)
class CatalogItem:
    id: int
    title: str
    overview: str = ""
    poster_path: str | None = None
    backdrop_path: str | None = None
    vote_average: float = 0.0
    vote_count: int = 0
    release_date: str | None = None

    @classmethod
    def from_api(cls, record):
        if not isinstance(record, dict) or record.get("id") is None:
            raise ValueError("catalog record without id")
        return cls(
            id=int(record["id"]),
            title=record.get("title") or "",
            overview=record.get("overview") or "",
            poster_path=record.get("poster_path") or None,
            backdrop_path=record.get("backdrop_path") or None,
            vote_average=min(max(float(record.get("vote_average") or 0), 0.0), 10.0),
            vote_count=max(int(record.get("vote_count") or 0), 0),
            release_date=record.get("release_date") or None,
        )

    @property
    def year(self):
        if not self.release_date or len(self.release_date) < 4:
            return None
        return self.release_date[:4]


def _get(url, params, timeout=None):
    timeout = config.REQUEST_TIMEOUT if timeout is None else timeout
    try:
        response = requests.get(url, params=params, timeout=timeout)
    except requests.RequestException as exc:
        raise FetchError(f"TMDB request failed: {exc}") from exc
    if response.status_code != 200:
        raise FetchError(f"TMDB request failed: {response.status_code}")
    try:
        data = response.json()
    except ValueError as exc:
        raise FetchError("TMDB returned malformed JSON") from exc
    if not isinstance(data, dict):
        raise FetchError("TMDB returned an unexpected payload")
    return data


def _results(data):
    results = data.get("results")
    if results is None:
        return []
    if not isinstance(results, list):
        raise FetchError("TMDB results is not a list")
    return results


def parse_items(results):
    try:
        return [CatalogItem.from_api(record) for record in results]
    except (TypeError, ValueError) as exc:
        raise FetchError(f"TMDB returned a malformed movie record: {exc}") from exc


def discover_movies(api_key, criteria, sort_by, page, timeout=None):
    if not isinstance(page, int) or isinstance(page, bool) or page < 1:
        raise ValueError(f"page must be a positive integer, got {page!r}")
    url = f"{BASE_URL}/discover/movie"
    payload = {"api_key": api_key}
    payload.update(criteria.to_params())
    payload["include_adult"] = "false"
    payload["sort_by"] = sort_by
    payload["page"] = page
    data = _get(url, payload, timeout)
    return _results(data)


@st.cache_data(show_spinner=False, ttl=1800)
def get_featured_movies(api_key, limit=config.FEATURED_COUNT):
    url = f"{BASE_URL}/movie/popular"
    data = _get(url, {"api_key": api_key, "include_adult": "false"})
    return parse_items(_results(data)[:limit])


def get_image_url(path):
    if not path:
        return None
    return f"{IMAGE_BASE}{path}"


def artwork_path(item):
    return item.backdrop_path or item.poster_path


def download_image(url, timeout=None):
    timeout = config.REQUEST_TIMEOUT if timeout is None else timeout
    try:
        response = requests.get(url, timeout=timeout)
    except requests.RequestException as exc:
        raise FetchError(f"Image request failed: {exc}") from exc
    if response.status_code != 200:
        raise FetchError(f"Image request failed: {response.status_code}")
    return response.content


def artwork_loader(item, timeout=None):
    url = get_image_url(artwork_path(item))
    if not url:
        return None

    async def load():
        logger.debug("Downloading artwork for movie %s from %s", item.id, url)
        return await asyncio.to_thread(download_image, url, timeout)

    return load


def find_item(movie_id, *groups):
    """First item with ``movie_id`` across the given sequences, or None."""
    if movie_id is None:
        return None
    for group in groups:
        for item in group:
            if item.id == movie_id:
                return item
    return None
