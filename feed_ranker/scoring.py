# feed_ranker/scoring.py
"""
Rule-based interest scoring and natural-break selection.

The rule-based scorer needs no trained model, so it is the cold-start
fallback whenever the classifier is untrained or unusable.
"""

import logging
from typing import List, Sequence

from .config import Settings, get_settings
from .schemas import InterestSet, WeightedEntry

logger = logging.getLogger(__name__)


def preference_score(record, settings: Settings = None):
    """Collapse one interaction record into a single signed reaction."""
    settings = settings or get_settings()
    if not record.has_signal():
        duration = record.duration_ms or settings.DEFAULT_DURATION_MS
        return (record.time_spent_ms / duration - 0.5) * 2

    score = 0.0
    if record.liked:
        score += settings.WEIGHT_LIKED
    if record.interested:
        score += settings.WEIGHT_INTERESTED
    if record.not_interested:
        score += settings.WEIGHT_NOT_INTERESTED
    if record.commented:
        score += settings.WEIGHT_COMMENTED
    return score


def engagement_label(score, settings: Settings = None):
    """0 = negative, 1 = neutral, 2 = positive."""
    settings = settings or get_settings()
    if score <= settings.NEGATIVE_CUTOFF:
        return 0
    if score >= settings.POSITIVE_CUTOFF:
        return 2
    return 1


def _weigh(names, attr, interactions, reactions, settings):
    tallies = {name: [0.0, 0.0, 0] for name in names}
    for record, reaction in zip(interactions, reactions):
        for name in getattr(record, attr):
            tally = tallies.get(name)
            if tally is None:
                continue
            if reaction > 0:
                tally[0] += reaction
            elif reaction < 0:
                tally[1] += -reaction
            tally[2] += 1

    n = max(1, len(interactions))
    scored = []
    for name, (positive, negative, count) in tallies.items():
        total = positive - negative
        avg = total / count if count > 0 else 0.0
        weight = settings.AVG_SHARE * avg + settings.TOTAL_SHARE * (total / n)
        if weight != 0:
            scored.append(WeightedEntry(name=name, weight=weight))
    scored.sort(key=lambda e: e.weight, reverse=True)
    return scored


class RuleBasedScorer:
    def __init__(self, settings: Settings = None):
        self.settings = settings or get_settings()

    def weigh(self, interactions, topics: Sequence[str], hashtags: Sequence[str]):
        """Unfiltered weights for every vocabulary entry with a non-zero score."""
        reactions = [preference_score(r, self.settings) for r in interactions]
        return (
            _weigh(topics, "topics", interactions, reactions, self.settings),
            _weigh(hashtags, "hashtags", interactions, reactions, self.settings),
        )

    def score(self, interactions, topics: Sequence[str], hashtags: Sequence[str]) -> InterestSet:
        interactions = list(interactions)
        if not topics and not hashtags:
            return InterestSet()
        if len(interactions) < self.settings.MIN_INTERACTIONS:
            return InterestSet()

        scored_topics, scored_hashtags = self.weigh(interactions, topics, hashtags)
        keep = self.settings.MAX_SELECTED
        floor = self.settings.MIN_WEIGHT
        result = InterestSet(
            topics=[e for e in scored_topics if e.weight > floor][:keep],
            hashtags=[e for e in scored_hashtags if e.weight > floor][:keep],
        )
        logger.debug("[SCORER] %d topics, %d hashtags selected", len(result.topics), len(result.hashtags))
        return result


def find_natural_split(entries: List[WeightedEntry], min_threshold=0.1, scan_limit=10, max_selected=5):
    """Index where the strong head of a descending weight list ends.

    Looks for the widest gap among the first ``scan_limit`` neighbours. A gap
    counts when it beats ``max(0.1, w0 * 0.25)`` or is more than 40% of the
    weight above it; a gap of more than 60% commits immediately. Without any
    qualifying gap the head is the top ``max_selected`` entries above
    ``min_threshold``.
    """
    n = len(entries)
    if n <= 3:
        return n

    split = n
    max_gap = 0.0
    gap_threshold = max(0.1, entries[0].weight * 0.25)
    for i in range(min(n - 1, scan_limit)):
        upper = entries[i].weight
        gap = upper - entries[i + 1].weight
        relative = gap / upper if upper > 0 else 0.0
        if (gap > max_gap and gap > gap_threshold) or relative > 0.4:
            max_gap = gap
            split = i + 1
            if relative > 0.6:
                break

    if split == n:
        return min(max_selected, sum(1 for e in entries if e.weight > min_threshold))
    return split
