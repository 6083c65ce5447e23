# feed_ranker/classifier.py

import logging
import threading
from typing import List, Sequence, Tuple

import numpy as np
from sklearn.neural_network import MLPClassifier

from .config import Settings, get_settings
from .schemas import ClassifierState, WeightedEntry
from .scoring import engagement_label, preference_score

logger = logging.getLogger(__name__)

CLASSES = np.array([0, 1, 2])  # negative, neutral, positive


class DegenerateTrainingSet(Exception):
    pass


class AdaptiveClassifier:
    """
    Small feed-forward engagement model over topic membership.

    The model is only valid for the exact topic vocabulary it was fitted on.
    At most one training run is in flight; a second train request waits for
    it to finish and then returns without training again.
    """

    def __init__(self, settings: Settings = None):
        self.settings = settings or get_settings()
        self._cond = threading.Condition()
        self._model = None
        self._trained = False
        self._training = False
        self._snapshot: Tuple[str, ...] = ()
        self.generation = 0

    @property
    def trained(self):
        return self._trained

    @property
    def training(self):
        return self._training

    @property
    def vocabulary_snapshot(self):
        return self._snapshot

    def state(self):
        with self._cond:
            return ClassifierState(
                trained=self._trained,
                training=self._training,
                vocabulary_snapshot=list(self._snapshot),
                generation=self.generation,
            )

    def wait_until_idle(self):
        with self._cond:
            while self._training:
                self._cond.wait()

    def is_current(self, topics: Sequence[str]):
        return self._trained and tuple(topics) == self._snapshot

    # -- training -------------------------------------------------------

    def _build_model(self, n_inputs):
        s = self.settings
        return MLPClassifier(
            hidden_layer_sizes=(max(s.MIN_HIDDEN_UNITS, n_inputs), s.SECOND_HIDDEN_UNITS),
            activation="relu",
            solver="adam",
            alpha=s.L2_PENALTY,
            learning_rate_init=s.LEARNING_RATE,
            batch_size=s.BATCH_SIZE,
            random_state=s.RANDOM_STATE,
        )

    def _training_rows(self, interactions, topics):
        xs, ys = [], []
        for record in interactions:
            if not record.topics:
                continue
            members = set(record.topics)
            xs.append([1.0 if t in members else 0.0 for t in topics])
            ys.append(engagement_label(preference_score(record, self.settings), self.settings))
        if not xs:
            raise DegenerateTrainingSet("no interaction carries topic data")
        return np.array(xs), np.array(ys)

    def _fit(self, xs, ys):
        model = self._build_model(xs.shape[1])
        for _ in range(self.settings.EPOCHS):
            model.partial_fit(xs, ys, classes=CLASSES)
        return model

    def train(self, interactions, topics: Sequence[str]):
        """Retrain on the tail of ``interactions`` (oldest first). Returns True if a run happened."""
        topics = tuple(topics)
        interactions = list(interactions)
        with self._cond:
            if self._training:
                logger.info("[CLASSIFIER] training already in flight, waiting for it")
                while self._training:
                    self._cond.wait()
                return False
            if not topics or len(interactions) < self.settings.MIN_INTERACTIONS:
                return False
            self._training = True
            self._trained = False
            self._model = None

        try:
            window = interactions[-self.settings.TRAIN_WINDOW:]
            xs, ys = self._training_rows(window, topics)
            model = self._fit(xs, ys)
        except DegenerateTrainingSet as e:
            logger.warning("[CLASSIFIER] training skipped: %s", e)
            model = None
        except Exception:
            logger.exception("[CLASSIFIER] training failed")
            model = None

        with self._cond:
            if model is not None:
                self._model = model
                self._snapshot = topics
                self._trained = True
                self.generation += 1
                logger.info("[CLASSIFIER] trained generation %d on %d rows, %d topics",
                            self.generation, len(xs), len(topics))
            self._training = False
            self._cond.notify_all()
        return model is not None

    # -- inference ------------------------------------------------------

    def _contrast(self, names, rows) -> List[WeightedEntry]:
        if not names:
            return []
        probs = self._model.predict_proba(np.array(rows, dtype=float))
        return [WeightedEntry(name=name, weight=float(p[2] - p[0])) for name, p in zip(names, probs)]

    def predict_weights(self, interactions, hashtags: Sequence[str]):
        """Signed P(positive) - P(negative) per snapshot topic and per hashtag.

        A hashtag is described by the topics it co-occurred with anywhere in
        the interaction history.
        """
        self.wait_until_idle()
        with self._cond:
            if not self._trained or self._model is None:
                return [], []
            topics = self._snapshot
            index = {t: i for i, t in enumerate(topics)}

            topic_rows = np.eye(len(topics))
            cooccur = {tag: [0.0] * len(topics) for tag in hashtags}
            for record in interactions:
                for tag in record.hashtags:
                    row = cooccur.get(tag)
                    if row is None:
                        continue
                    for topic in record.topics:
                        if topic in index:
                            row[index[topic]] = 1.0

            topic_weights = self._contrast(list(topics), topic_rows)
            hashtag_weights = self._contrast(list(hashtags), [cooccur[h] for h in hashtags])
        return topic_weights, hashtag_weights
