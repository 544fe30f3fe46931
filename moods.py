from dataclasses import dataclass


DEFAULT_MOOD = "comfort"
DEFAULT_SORT = "popularity.desc"

SORT_OPTIONS = {
    "popularity.desc": "Most Popular",
    "vote_average.desc": "Highest Rated",
    "release_date.desc": "Newest",
    "release_date.asc": "Oldest",
    "vote_count.desc": "Most Reviewed",
}


@dataclass(frozen=True)
class QueryCriteria:
    genre_ids: tuple = ()
    company_id: int | None = None
    release_date_lte: str | None = None
    include_adult: bool = False

    def is_empty(self):
        return not (self.genre_ids or self.company_id or self.release_date_lte)

    def to_params(self):
        params = {"include_adult": "false"}
        if self.genre_ids:
            params["with_genres"] = ",".join(str(genre_id) for genre_id in self.genre_ids)
        if self.company_id is not None:
            params["with_companies"] = str(self.company_id)
        if self.release_date_lte:
            params["primary_release_date.lte"] = self.release_date_lte
        return params


MOOD_CRITERIA = {
    "cozy": QueryCriteria(genre_ids=(16, 10749, 35)),  # animation, romance, comedy
    "romantic": QueryCriteria(genre_ids=(10749,)),
    "wholesome": QueryCriteria(genre_ids=(16, 10751)),  # animation, family
    "rainy": QueryCriteria(genre_ids=(18, 9648)),  # drama, mystery
    "nostalgic": QueryCriteria(release_date_lte="2005-01-01"),
    "a24": QueryCriteria(company_id=41077),
    "ghibli": QueryCriteria(company_id=10342),
    "thriller": QueryCriteria(genre_ids=(53, 80)),  # thriller, crime
    "comfort": QueryCriteria(genre_ids=(35, 10751)),  # comedy, family
}

MOOD_KEYWORDS = {
    "cozy": ["cozy", "warm", "soft", "comforting"],
    "romantic": ["romantic", "love", "date", "crush"],
    "wholesome": ["wholesome", "cute", "uplifting", "sweet"],
    "rainy": ["rainy", "sad", "moody", "melancholy"],
    "nostalgic": ["nostalgic", "memory", "childhood", "retro"],
    "a24": ["a24"],
    "ghibli": ["ghibli", "studio ghibli"],
    "thriller": ["thriller", "scary", "crime", "mystery"],
    "comfort": ["comfort", "feel-good", "safe"],
}

MOODS = list(MOOD_CRITERIA)

_LABELS = {"a24": "A24", "ghibli": "Ghibli"}


def normalize_selector(selector):
    if not selector:
        return DEFAULT_MOOD
    key = str(selector).strip().lower()
    return key if key in MOOD_CRITERIA else DEFAULT_MOOD


def criteria_for(selector):
    return MOOD_CRITERIA[normalize_selector(selector)]


def resolve_selector(text):
    """Map free text to a mood by keyword, first match in table order."""
    if not text:
        return DEFAULT_MOOD
    lowered = text.lower().strip()
    if not lowered:
        return DEFAULT_MOOD
    for mood, keywords in MOOD_KEYWORDS.items():
        if any(keyword in lowered for keyword in keywords):
            return mood
    return DEFAULT_MOOD


def mood_label(selector):
    mood = normalize_selector(selector)
    return _LABELS.get(mood, mood.capitalize())
