# feed_ranker/analyzer.py

import logging

from .classifier import AdaptiveClassifier
from .config import Settings, get_settings
from .schemas import InterestSet
from .scoring import RuleBasedScorer, find_natural_split
from .store import Vocabulary

logger = logging.getLogger(__name__)


class InterestAnalyzer:
    """Picks the interest set for the next content request.

    Uses classifier inference when a model is trained, otherwise the
    rule-based scorer.
    """

    def __init__(self, vocabulary: Vocabulary, classifier: AdaptiveClassifier,
                 scorer: RuleBasedScorer = None, settings: Settings = None):
        self.settings = settings or get_settings()
        self.vocabulary = vocabulary
        self.classifier = classifier
        self.scorer = scorer or RuleBasedScorer(self.settings)
        self.last_result = InterestSet()

    def _select(self, entries):
        entries = sorted(entries, key=lambda e: e.weight, reverse=True)
        split = find_natural_split(
            entries,
            min_threshold=self.settings.MIN_WEIGHT,
            scan_limit=self.settings.SPLIT_SCAN_LIMIT,
            max_selected=self.settings.MAX_SELECTED,
        )
        return [e for e in entries[:split] if e.weight > self.settings.MIN_WEIGHT]

    def analyze(self, interactions) -> InterestSet:
        interactions = list(interactions)
        topics = self.vocabulary.topics
        hashtags = self.vocabulary.hashtags
        if not topics or len(interactions) < self.settings.MIN_INTERACTIONS:
            self.last_result = InterestSet()
            return self.last_result

        self.classifier.wait_until_idle()
        if self.classifier.trained and not self.classifier.is_current(topics):
            logger.info("[ANALYZER] vocabulary grew to %d topics, retraining before inference", len(topics))
            for _ in range(2):
                self.classifier.train(interactions, topics)
                # a coalesced run may have been fitted on an older vocabulary
                if self.classifier.is_current(topics):
                    break

        if self.classifier.is_current(topics):
            topic_weights, hashtag_weights = self.classifier.predict_weights(interactions, hashtags)
            result = InterestSet(topics=self._select(topic_weights), hashtags=self._select(hashtag_weights))
            source = "classifier"
        else:
            result = self.scorer.score(interactions, topics, hashtags)
            source = "rules"

        logger.info("[ANALYZER] %s picked topics=%s hashtags=%s", source,
                    [e.name for e in result.topics], [e.name for e in result.hashtags])
        self.last_result = result
        return result
