from __future__ import annotations

import os

os.environ.setdefault("FEED_RANKER_IDLE_SECONDS", "0")
os.environ.setdefault("FEED_RANKER_RANDOM_STATE", "0")

import pytest

from feed_ranker.config import Settings
from feed_ranker.schemas import ContentItem
from feed_ranker.store import InteractionStore


def make_item(item_id, topics=(), hashtags=(), duration_ms=None) -> ContentItem:
    return ContentItem(id=item_id, topics=list(topics), hashtags=list(hashtags), duration_ms=duration_ms)


def liked_and_rejected(store: InteractionStore, n=10):
    """n liked sports posts and n rejected politics posts."""
    for i in range(n):
        store.upsert(f"s{i}", {"liked": True}, item=make_item(f"s{i}", ["sports"], ["#matchday"]))
        store.upsert(f"p{i}", {"not_interested": True}, item=make_item(f"p{i}", ["politics"], ["#election"]))
    return store


@pytest.fixture()
def settings() -> Settings:
    return Settings(IDLE_SECONDS=0, RANDOM_STATE=0)


@pytest.fixture()
def fast_settings() -> Settings:
    # enough optimisation steps for a clear signal on tiny data sets
    return Settings(IDLE_SECONDS=0, RANDOM_STATE=0, EPOCHS=150, LEARNING_RATE=0.01)


@pytest.fixture()
def store(settings) -> InteractionStore:
    return InteractionStore(default_duration_ms=settings.DEFAULT_DURATION_MS)
