import config


MIN_VOTE_COUNT = 200
MIN_VOTE_AVERAGE = 6


def has_artwork(item):
    return bool(item.poster_path)


def passes_safety(item, banned_terms=None):
    # Plain substring match, so "sex" also rejects "Sussex".
    terms = config.BANNED_TERMS if banned_terms is None else banned_terms
    title = (item.title or "").lower()
    overview = (item.overview or "").lower()
    return not any(term.lower() in title or term.lower() in overview for term in terms)


def meets_quality_bar(item):
    return item.vote_count > MIN_VOTE_COUNT and item.vote_average >= MIN_VOTE_AVERAGE


def filter_items(items, banned_terms=None):
    """Keep displayable items, in their original order.

    Cheap checks run first: artwork, then the banned-term scan, then votes.
    """
    terms = config.BANNED_TERMS if banned_terms is None else banned_terms
    return [
        item
        for item in items
        if has_artwork(item) and passes_safety(item, terms) and meets_quality_bar(item)
    ]
