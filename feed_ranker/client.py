# feed_ranker/client.py

import json
import logging
import random
from typing import List, Optional, Protocol, Sequence

import httpx

from .config import Settings, get_settings
from .ranker import rank_posts
from .schemas import ContentItem, InterestSet, PostsResponse

logger = logging.getLogger(__name__)


class ContentSource(Protocol):
    def fetch(self, limit: int, interest: InterestSet) -> PostsResponse:
        ...


def interest_params(limit, interest: InterestSet):
    params = {"limit": limit}
    if interest.topics:
        params["topics"] = json.dumps([e.model_dump() for e in interest.topics])
    if interest.hashtags:
        params["hashtags"] = json.dumps([e.model_dump() for e in interest.hashtags])
    return params


class HttpContentSource:
    """Fetches batches from a running feed server."""

    def __init__(self, base_url="http://127.0.0.1:8000", client: Optional[httpx.Client] = None, timeout=10.0):
        self.client = client or httpx.Client(base_url=base_url, timeout=timeout)

    def fetch(self, limit, interest: InterestSet) -> PostsResponse:
        resp = self.client.get("/api/posts", params=interest_params(limit, interest))
        resp.raise_for_status()
        return PostsResponse.model_validate(resp.json())

    def close(self):
        self.client.close()


class LocalContentSource:
    """Ranks an in-memory pool without going over the network."""

    def __init__(self, posts: Sequence[ContentItem], settings: Settings = None, rng: random.Random = None):
        self.settings = settings or get_settings()
        self.posts: List[ContentItem] = list(posts)
        self.rng = rng or random.Random()

    def fetch(self, limit, interest: InterestSet) -> PostsResponse:
        batch = rank_posts(
            self.posts,
            interest.topics,
            interest.hashtags,
            limit=limit,
            noise_fraction=self.settings.NOISE_FRACTION,
            relevant_multiplier=self.settings.RELEVANT_MULTIPLIER,
            rng=self.rng,
        )
        return PostsResponse(posts=batch, limit=limit, total=len(self.posts))
