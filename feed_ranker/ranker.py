# feed_ranker/ranker.py

import json
import logging
import math
import random
from typing import List, Optional, Sequence, Tuple

from pydantic import TypeAdapter, ValidationError

from .schemas import ContentItem, WeightedEntry

logger = logging.getLogger(__name__)

_entries = TypeAdapter(List[WeightedEntry])


class MalformedRequestParameters(ValueError):
    pass


def _parse_json_param(raw):
    try:
        value = json.loads(raw)
    except ValueError as e:
        raise MalformedRequestParameters(f"not JSON: {raw!r}") from e

    if not isinstance(value, list):
        raise MalformedRequestParameters(f"expected a list, got {type(value).__name__}")
    if all(isinstance(v, str) for v in value):
        return [], [v for v in value if v]
    try:
        return _entries.validate_python(value), []
    except ValidationError as e:
        raise MalformedRequestParameters(str(e)) from e


def parse_interest_param(raw: Optional[str]) -> Tuple[List[WeightedEntry], List[str]]:
    """Decode a topics/hashtags query parameter.

    Returns ``(weighted, names)``. A JSON list of ``{name, weight}`` objects is
    the preferred encoding; a JSON list of strings or a plain comma separated
    string are the legacy name-only encodings. Anything else means no filter.
    """
    if not raw or not raw.strip():
        return [], []
    try:
        return _parse_json_param(raw)
    except MalformedRequestParameters as e:
        stripped = raw.strip()
        if stripped.startswith(("[", "{")):
            logger.warning("[RANKER] ignoring unusable interest parameter: %s", e)
            return [], []
        return [], [name.strip() for name in stripped.split(",") if name.strip()]


def as_weighted(names, weight=1.0) -> List[WeightedEntry]:
    """Legacy names mixed into a weighted request count with a flat weight."""
    return [WeightedEntry(name=name, weight=weight) for name in names]


def score_post(post: ContentItem, topic_weights, hashtag_weights):
    return (sum(topic_weights.get(t, 0.0) for t in post.topics)
            + sum(hashtag_weights.get(h, 0.0) for h in post.hashtags))


def rank_posts(posts: Sequence[ContentItem], topics=(), hashtags=(), limit=10,
               noise_fraction=0.3, relevant_multiplier=2, rng: random.Random = None):
    """Pick a batch of at most ``limit`` posts for the given interests.

    ``topics`` and ``hashtags`` are either weighted entries or plain names.
    Weighted interests keep the ``relevant_multiplier * limit`` best scoring
    posts; plain names keep exact matches. Either way a ``noise_fraction`` of
    ``limit`` random excluded posts is mixed in before the final shuffle.
    """
    rng = rng or random
    posts = list(posts)
    topics = list(topics)
    hashtags = list(hashtags)

    weighted = any(isinstance(e, WeightedEntry) for e in topics + hashtags)
    if weighted:
        topic_weights = {e.name: e.weight for e in topics if isinstance(e, WeightedEntry)}
        hashtag_weights = {e.name: e.weight for e in hashtags if isinstance(e, WeightedEntry)}
        scored = sorted(posts, key=lambda p: score_post(p, topic_weights, hashtag_weights), reverse=True)
        relevant = scored[:relevant_multiplier * limit]
    elif topics or hashtags:
        wanted_topics = set(topics)
        wanted_hashtags = set(hashtags)
        relevant = [p for p in posts
                    if wanted_topics.intersection(p.topics) or wanted_hashtags.intersection(p.hashtags)]
    else:
        relevant = posts

    if relevant is not posts:
        chosen = {id(p) for p in relevant}
        excluded = [p for p in posts if id(p) not in chosen]
        noise_count = min(math.floor(limit * noise_fraction), len(excluded))
        noise = rng.sample(excluded, noise_count)
        logger.debug("[RANKER] %d relevant + %d noise of %d", len(relevant), len(noise), len(posts))
        relevant = relevant + noise

    batch = list(relevant)
    rng.shuffle(batch)
    return batch[:limit]
