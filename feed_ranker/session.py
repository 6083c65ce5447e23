# feed_ranker/session.py

import logging
import threading
import time
from typing import List, Optional

from .analyzer import InterestAnalyzer
from .classifier import AdaptiveClassifier
from .config import Settings, get_settings
from .schemas import ContentItem, InterestSet, SessionSnapshot
from .store import InteractionStore, Vocabulary

logger = logging.getLogger(__name__)

EVENT_PATCHES = {
    "interested": {"interested": True},
    "not_interested": {"not_interested": True},
    "comment": {"commented": True},
}


class FeedSession:
    """All mutable state for one user's feed: interactions, vocabulary and model."""

    def __init__(self, settings: Settings = None, clock=time.monotonic):
        self.settings = settings or get_settings()
        self.clock = clock
        self.store = InteractionStore(default_duration_ms=self.settings.DEFAULT_DURATION_MS)
        self.vocabulary = Vocabulary()
        self.classifier = AdaptiveClassifier(self.settings)
        self.analyzer = InterestAnalyzer(self.vocabulary, self.classifier, settings=self.settings)
        self.batch: List[ContentItem] = []

        self._lock = threading.RLock()
        self._idle_timer: Optional[threading.Timer] = None
        self._viewing: Optional[ContentItem] = None
        self._view_started: Optional[float] = None

    # -- interactions ---------------------------------------------------

    def _flush_view(self):
        if self._viewing is None or self._view_started is None:
            return
        now = self.clock()
        spent_ms = (now - self._view_started) * 1000.0
        self.store.record_time_spent(self._viewing.id, spent_ms, item=self._viewing)
        self._view_started = now

    def start_view(self, item: ContentItem):
        if not item.id:
            return
        with self._lock:
            self._flush_view()
            self._viewing = item
            self._view_started = self.clock()
        self._reset_idle_timer()

    def end_view(self):
        with self._lock:
            self._flush_view()
            self._viewing = None
            self._view_started = None
        self._reset_idle_timer()

    def record(self, event, item: ContentItem):
        """Apply one presentation-layer event. Items without an id are ignored."""
        if not item.id:
            return None
        if event == "view_start":
            self.start_view(item)
            return self.store.get(item.id)
        if event == "view_end":
            self.end_view()
            return self.store.get(item.id)

        with self._lock:
            if self._viewing is not None and self._viewing.id == item.id:
                self._flush_view()
            if event == "like":
                current = self.store.get(item.id)
                patch = {"liked": not (current is not None and current.liked)}
            elif event in EVENT_PATCHES:
                patch = EVENT_PATCHES[event]
            else:
                raise ValueError(f"unknown interaction event: {event}")
            record = self.store.upsert(item.id, patch, item=item)
        self._reset_idle_timer()
        return record

    def record_time_spent(self, item_id, delta_ms, item: ContentItem = None):
        if not item_id:
            return None
        with self._lock:
            record = self.store.record_time_spent(item_id, delta_ms, item=item)
        self._reset_idle_timer()
        return record

    # -- retraining -----------------------------------------------------

    def _reset_idle_timer(self):
        if self.settings.IDLE_SECONDS <= 0:
            return
        with self._lock:
            if self._idle_timer is not None:
                self._idle_timer.cancel()
            self._idle_timer = threading.Timer(self.settings.IDLE_SECONDS, self._on_idle)
            self._idle_timer.daemon = True
            self._idle_timer.start()

    def _on_idle(self):
        logger.info("[SESSION] idle for %.1fs, retraining", self.settings.IDLE_SECONDS)
        self.request_retrain()

    def request_retrain(self):
        with self._lock:
            interactions = self.store.all()
            topics = self.vocabulary.topics
        return self.classifier.train(interactions, topics)

    # -- batches --------------------------------------------------------

    def observe_batch(self, posts):
        with self._lock:
            return self.vocabulary.observe(posts)

    def analyze(self) -> InterestSet:
        with self._lock:
            interactions = self.store.all()
        return self.analyzer.analyze(interactions)

    def load_next_batch(self, source, limit=None):
        """Batch exhausted: retrain, pick interests, fetch and remember the next batch."""
        limit = limit or self.settings.DEFAULT_LIMIT
        self.request_retrain()
        interest = self.analyze()
        response = source.fetch(limit, interest)
        self.observe_batch(response.posts)
        self.batch = list(response.posts)
        logger.info("[SESSION] loaded %d posts (%d available)", len(self.batch), response.total)
        return response

    def snapshot(self, recent=20) -> SessionSnapshot:
        with self._lock:
            records = self.store.recent(recent)
            return SessionSnapshot(
                classifier=self.classifier.state(),
                topics=list(self.vocabulary.topics),
                hashtags=list(self.vocabulary.hashtags),
                interaction_count=len(self.store),
                last_interest=self.analyzer.last_result,
                recent_interactions=[r.to_view() for r in reversed(records)],
            )

    def close(self):
        with self._lock:
            if self._idle_timer is not None:
                self._idle_timer.cancel()
                self._idle_timer = None
