import asyncio
import logging

import streamlit as st

import config
import content_filter
import moods
import quantizer
import tmdb_client
from fetcher import PaginatedFetcher
from palette_cache import PaletteCache


config.configure_logging()
logger = logging.getLogger("mood_movies.app")

st.set_page_config(page_title="Mood Movies", page_icon="🎬", layout="wide")

TMDB_API_KEY = config.TMDB_API_KEY or st.secrets.get("TMDB_API_KEY")

st.title("🎬 Mood Movies")
st.caption("Pick a vibe, find a movie, see its colors.")

if not TMDB_API_KEY:
    st.error("TMDB API key is missing. Set TMDB_API_KEY or add it to Streamlit secrets.")
    st.stop()

st.session_state.setdefault("fetcher", PaginatedFetcher(TMDB_API_KEY))
st.session_state.setdefault("palette_cache", PaletteCache())
st.session_state.setdefault("mood", moods.DEFAULT_MOOD)
st.session_state.setdefault("sort_by", moods.DEFAULT_SORT)
st.session_state.setdefault("selected_id", None)
st.session_state.setdefault("fetch_error", None)

fetcher = st.session_state.fetcher
palette_cache = st.session_state.palette_cache


def load_page():
    state = fetcher.state
    try:
        asyncio.run(fetcher.fetch_next_page(state))
        st.session_state.fetch_error = None
    except tmdb_client.FetchError as exc:
        logger.exception("Page %s for mood %s failed", state.current_page, state.mood)
        st.session_state.fetch_error = str(exc)


def select_mood(mood):
    st.session_state.mood = moods.normalize_selector(mood)
    st.session_state.selected_id = None


with st.form("search"):
    query = st.text_input(
        "How do you feel tonight?", placeholder="Something warm and nostalgic..."
    )
    if st.form_submit_button("Find my mood"):
        select_mood(moods.resolve_selector(query))

mood_cols = st.columns(len(moods.MOODS))
for col, mood in zip(mood_cols, moods.MOODS):
    if col.button(moods.mood_label(mood), key=f"mood-{mood}"):
        select_mood(mood)

st.selectbox(
    "Sort by",
    list(moods.SORT_OPTIONS),
    format_func=moods.SORT_OPTIONS.get,
    key="sort_by",
)

state = fetcher.state
if state is None or (state.mood, state.sort_by) != (st.session_state.mood, st.session_state.sort_by):
    fetcher.start_session(st.session_state.mood, st.session_state.sort_by)
    load_page()

st.header(f"{moods.mood_label(st.session_state.mood)} Movies")

if st.session_state.fetch_error:
    st.error("Could not reach TMDB. Please try again.")
    if st.button("Retry"):
        load_page()
        st.rerun()

movies = content_filter.filter_items(fetcher.state.items)
if not movies and fetcher.state.exhausted:
    st.info("No movies matched this mood.")

grid = st.columns(4)
for index, movie in enumerate(movies):
    with grid[index % 4]:
        st.image(tmdb_client.get_image_url(movie.poster_path), width="stretch")
        st.caption(f"{movie.title} ({movie.year or '—'}) ⭐{movie.vote_average:.1f}")
        if st.button("Details", key=f"details-{movie.id}"):
            st.session_state.selected_id = movie.id

if not fetcher.state.exhausted and not st.session_state.fetch_error:
    if st.button("Load more"):
        load_page()
        st.rerun()

try:
    featured = tmdb_client.get_featured_movies(TMDB_API_KEY)
except tmdb_client.FetchError:
    logger.exception("Featured movies failed")
    featured = []

selected = tmdb_client.find_item(st.session_state.selected_id, fetcher.state.items, featured)

with st.sidebar:
    if selected:
        st.subheader(selected.title)
        st.caption(f"{selected.year or '—'} • ⭐{selected.vote_average:.1f}")
        st.write(selected.overview)
        palette = asyncio.run(
            palette_cache.get_palette(selected.id, tmdb_client.artwork_loader(selected))
        )
        if palette:
            st.markdown("**Mood Palette**")
            swatch_cols = st.columns(len(palette))
            for col, swatch in zip(swatch_cols, palette):
                col.markdown(
                    f'<div style="background:{swatch.hex};height:40px;border-radius:20px"></div>',
                    unsafe_allow_html=True,
                )
                col.caption(swatch.hex)
            primary = quantizer.primary_color(palette)
            st.caption(f"Primary: {primary.hex}")
        else:
            st.info("No palette available for this movie.")

    st.subheader("Popular right now")
    for movie in featured:
        poster_url = tmdb_client.get_image_url(movie.poster_path)
        if poster_url:
            st.image(poster_url, width=120)
        st.caption(movie.title)
        if st.button("Details", key=f"featured-{movie.id}"):
            st.session_state.selected_id = movie.id
            st.rerun()

    with st.expander("Diagnostics"):
        st.write(f"Generation: {fetcher.generation}")
        st.write(f"Next page: {fetcher.state.current_page}")
        st.write(f"Fetched: {len(fetcher.state.items)}, shown: {len(movies)}")
        st.write(f"Exhausted: {fetcher.state.exhausted}")
        st.write(f"Palettes cached: {len(palette_cache)}")
