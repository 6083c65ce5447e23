from __future__ import annotations

import threading
import time

from conftest import liked_and_rejected, make_item
from feed_ranker.classifier import AdaptiveClassifier

TOPICS = ("sports", "politics")


def test_untrained_by_default(settings):
    clf = AdaptiveClassifier(settings)
    state = clf.state()
    assert not state.trained and not state.training
    assert state.vocabulary_snapshot == []
    assert clf.predict_weights([], []) == ([], [])


def test_training_below_threshold_is_noop(store, settings):
    for i in range(settings.MIN_INTERACTIONS - 1):
        store.upsert(f"a{i}", {"liked": True}, item=make_item(f"a{i}", ["sports"]))
    clf = AdaptiveClassifier(settings)
    assert clf.train(store.all(), TOPICS) is False
    assert not clf.trained
    assert clf.generation == 0


def test_training_without_vocabulary_is_noop(store, settings):
    liked_and_rejected(store)
    clf = AdaptiveClassifier(settings)
    assert clf.train(store.all(), ()) is False
    assert not clf.trained


def test_degenerate_training_set_leaves_model_untrained(store, settings):
    for i in range(12):
        store.record_time_spent(f"a{i}", 5000)
    clf = AdaptiveClassifier(settings)

    assert clf.train(store.all(), TOPICS) is False
    state = clf.state()
    assert state.trained is False
    assert state.training is False


def test_failure_inside_fit_is_contained(store, settings, monkeypatch):
    liked_and_rejected(store)
    clf = AdaptiveClassifier(settings)

    def boom(xs, ys):
        raise RuntimeError("numerical trouble")

    monkeypatch.setattr(clf, "_fit", boom)
    assert clf.train(store.all(), TOPICS) is False
    assert not clf.trained and not clf.training


def test_training_records_vocabulary_snapshot(store, settings):
    liked_and_rejected(store)
    clf = AdaptiveClassifier(settings)

    assert clf.train(store.all(), TOPICS) is True
    assert clf.trained
    assert clf.vocabulary_snapshot == TOPICS
    assert clf.is_current(TOPICS)
    assert not clf.is_current(TOPICS + ("music",))
    assert clf.generation == 1


def test_training_uses_recent_window(store, settings):
    liked_and_rejected(store)
    clf = AdaptiveClassifier(settings)
    seen = []
    original = clf._training_rows

    def spy(window, topics):
        seen.append(len(window))
        return original(window, topics)

    clf._training_rows = spy
    for i in range(150):
        store.upsert(f"x{i}", {"liked": True}, item=make_item(f"x{i}", ["sports"]))
    clf.train(store.all(), TOPICS)
    assert seen == [settings.TRAIN_WINDOW]


def test_learned_contrast_separates_topics(store, fast_settings):
    liked_and_rejected(store)
    clf = AdaptiveClassifier(fast_settings)
    clf.train(store.all(), TOPICS)

    topic_weights, hashtag_weights = clf.predict_weights(store.all(), ["#matchday", "#election", "#unseen"])
    topics = {e.name: e.weight for e in topic_weights}
    hashtags = {e.name: e.weight for e in hashtag_weights}

    assert list(topics) == list(TOPICS)
    assert topics["sports"] > 0 > topics["politics"]
    assert hashtags["#matchday"] > hashtags["#election"]
    assert all(-1.0 <= w <= 1.0 for w in list(topics.values()) + list(hashtags.values()))
    assert set(hashtags) == {"#matchday", "#election", "#unseen"}


def test_back_to_back_retrains_coalesce(store, settings):
    liked_and_rejected(store)
    clf = AdaptiveClassifier(settings)
    started = threading.Event()
    release = threading.Event()
    original = clf._fit

    def slow_fit(xs, ys):
        started.set()
        release.wait(5)
        return original(xs, ys)

    clf._fit = slow_fit
    results = {}

    def trigger(name, topics):
        results[name] = clf.train(store.all(), topics)

    first = threading.Thread(target=trigger, args=("idle", TOPICS))
    first.start()
    assert started.wait(5)
    assert clf.training

    second = threading.Thread(target=trigger, args=("batch", TOPICS + ("music",)))
    second.start()
    time.sleep(0.05)
    assert second.is_alive()

    release.set()
    first.join(5)
    second.join(5)

    assert results == {"idle": True, "batch": False}
    assert clf.generation == 1
    assert clf.vocabulary_snapshot == TOPICS
    assert not clf.training


def test_inference_waits_for_training(store, settings):
    liked_and_rejected(store)
    clf = AdaptiveClassifier(settings)
    started = threading.Event()
    release = threading.Event()
    original = clf._fit

    def slow_fit(xs, ys):
        started.set()
        release.wait(5)
        return original(xs, ys)

    clf._fit = slow_fit
    trainer = threading.Thread(target=clf.train, args=(store.all(), TOPICS))
    trainer.start()
    assert started.wait(5)

    out = {}
    reader = threading.Thread(target=lambda: out.setdefault("w", clf.predict_weights(store.all(), [])))
    reader.start()
    time.sleep(0.05)
    assert reader.is_alive()

    release.set()
    trainer.join(5)
    reader.join(5)
    topic_weights, _ = out["w"]
    assert [e.name for e in topic_weights] == list(TOPICS)
