# feed_ranker/store.py

import logging
import time
from collections import OrderedDict
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Tuple

from .schemas import ContentItem, InteractionView

logger = logging.getLogger(__name__)

DEFAULT_DURATION_MS = 10000.0


@dataclass
class InteractionRecord:
    """Everything the user did with one content item."""
    item_id: str
    topics: Tuple[str, ...] = ()
    hashtags: Tuple[str, ...] = ()
    liked: bool = False
    interested: bool = False
    not_interested: bool = False
    commented: bool = False
    time_spent_ms: float = 0.0
    duration_ms: float = DEFAULT_DURATION_MS
    last_updated: float = field(default_factory=time.time)

    def has_signal(self):
        return self.liked or self.interested or self.not_interested or self.commented

    def to_view(self):
        return InteractionView(
            item_id=self.item_id,
            topics=list(self.topics),
            hashtags=list(self.hashtags),
            liked=self.liked,
            interested=self.interested,
            not_interested=self.not_interested,
            commented=self.commented,
            time_spent_ms=self.time_spent_ms,
            last_updated=self.last_updated,
        )


PATCH_FIELDS = ("liked", "interested", "not_interested", "commented")


class InteractionStore:
    def __init__(self, default_duration_ms=DEFAULT_DURATION_MS):
        self.default_duration_ms = default_duration_ms
        # least recently touched first
        self.records: "OrderedDict[str, InteractionRecord]" = OrderedDict()

    def __len__(self):
        return len(self.records)

    def _ensure(self, item_id, item: Optional[ContentItem] = None):
        record = self.records.get(item_id)
        if record is None:
            record = InteractionRecord(item_id=item_id, duration_ms=self.default_duration_ms)
            self.records[item_id] = record
            logger.debug("[STORE] created record for %s", item_id)
        else:
            self.records.move_to_end(item_id)
        if item is not None and not record.topics and not record.hashtags:
            record.topics = tuple(item.topics)
            record.hashtags = tuple(item.hashtags)
            if item.duration_ms:
                record.duration_ms = item.duration_ms
        return record

    def upsert(self, item_id, patch, item: Optional[ContentItem] = None):
        unknown = set(patch) - set(PATCH_FIELDS)
        if unknown:
            raise ValueError(f"unknown interaction fields: {sorted(unknown)}")

        record = self._ensure(item_id, item)
        if patch.get("interested"):
            record.interested = True
            record.not_interested = False
        elif patch.get("not_interested"):
            record.not_interested = True
            record.interested = False
        else:
            if "interested" in patch:
                record.interested = False
            if "not_interested" in patch:
                record.not_interested = False

        if "liked" in patch:
            record.liked = bool(patch["liked"])
        # commented never reverts
        if patch.get("commented"):
            record.commented = True

        record.last_updated = time.time()
        return record

    def record_time_spent(self, item_id, delta_ms, item: Optional[ContentItem] = None):
        record = self._ensure(item_id, item)
        record.time_spent_ms += max(0.0, float(delta_ms))
        record.last_updated = time.time()
        return record

    def get(self, item_id):
        return self.records.get(item_id)

    def all(self) -> List[InteractionRecord]:
        return list(self.records.values())

    def recent(self, n) -> List[InteractionRecord]:
        return list(self.records.values())[-n:] if n > 0 else []


class Vocabulary:
    """Every topic and hashtag seen this session, in first-seen order."""

    def __init__(self):
        self._topics: Dict[str, None] = {}
        self._hashtags: Dict[str, None] = {}

    @property
    def topics(self) -> Tuple[str, ...]:
        return tuple(self._topics)

    @property
    def hashtags(self) -> Tuple[str, ...]:
        return tuple(self._hashtags)

    def observe(self, items: Iterable[ContentItem]):
        before = (len(self._topics), len(self._hashtags))
        for item in items:
            for topic in item.topics:
                self._topics.setdefault(topic, None)
            for tag in item.hashtags:
                self._hashtags.setdefault(tag, None)
        grew = (len(self._topics), len(self._hashtags)) != before
        if grew:
            logger.info("[STORE] vocabulary now %d topics, %d hashtags", len(self._topics), len(self._hashtags))
        return grew
