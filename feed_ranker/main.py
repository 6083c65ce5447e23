# feed_ranker/main.py
from fastapi import FastAPI, HTTPException
import json, logging, os, random
import uvicorn
from typing import List, Optional

from .client import LocalContentSource
from .config import get_settings
from .ranker import as_weighted, parse_interest_param, rank_posts
from .schemas import (
    ClassifierState,
    ContentItem,
    ContentRequest,
    InteractionEvent,
    InteractionView,
    InterestSet,
    PostsResponse,
    SessionSnapshot,
)
from .session import FeedSession

settings = get_settings()
logging.basicConfig(level=settings.LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s %(message)s")
logger = logging.getLogger(__name__)

app = FastAPI(title=settings.APP_NAME)

TOPICS = ["sports", "politics", "music", "science", "travel", "food", "gaming", "finance", "art", "health"]
HASHTAGS = {
    "sports": ["#matchday", "#training"],
    "politics": ["#election", "#policy"],
    "music": ["#newrelease", "#live"],
    "science": ["#space", "#research"],
    "travel": ["#wanderlust", "#roadtrip"],
    "food": ["#recipe", "#streetfood"],
    "gaming": ["#speedrun", "#esports"],
    "finance": ["#markets", "#crypto"],
    "art": ["#painting", "#design"],
    "health": ["#fitness", "#sleep"],
}

posts: List[ContentItem] = []
session = FeedSession(settings)
rng = random.Random()


def load_dummy_content(n, seed):
    gen = random.Random(seed)
    items = []
    for i in range(1, n + 1):
        topics = gen.sample(TOPICS, gen.randint(1, 2))
        hashtags = sorted({gen.choice(HASHTAGS[t]) for t in topics})
        items.append(ContentItem(
            id=f"post-{i}",
            title=f"Post #{i}",
            body=f"Something about {' and '.join(topics)}",
            topics=topics,
            hashtags=hashtags,
            duration_ms=float(gen.choice([5000, 10000, 15000])),
        ))
    return items


def load_content():
    path = settings.CONTENT_FILE
    if path and os.path.exists(path):
        with open(path, "r") as f:
            items = [ContentItem.model_validate(obj) for obj in json.load(f)]
        logger.info("[API] loaded %d posts from %s", len(items), path)
        return items
    return load_dummy_content(settings.POOL_SIZE, settings.POOL_SEED)


def get_posts():
    if not posts:
        posts.extend(load_content())
    return posts


@app.on_event("startup")
def startup():
    get_posts()


@app.on_event("shutdown")
def shutdown():
    session.close()


def _serve(limit, topics, hashtags):
    pool = get_posts()
    batch = rank_posts(
        pool, topics, hashtags,
        limit=limit,
        noise_fraction=settings.NOISE_FRACTION,
        relevant_multiplier=settings.RELEVANT_MULTIPLIER,
        rng=rng,
    )
    return PostsResponse(posts=batch, limit=limit, total=len(pool))


@app.get("/api/posts", response_model=PostsResponse)
async def list_posts(limit: int = 10, topics: Optional[str] = None, hashtags: Optional[str] = None):
    if limit < 1:
        limit = settings.DEFAULT_LIMIT
    weighted_topics, topic_names = parse_interest_param(topics)
    weighted_hashtags, hashtag_names = parse_interest_param(hashtags)
    if weighted_topics or weighted_hashtags:
        return _serve(limit, weighted_topics + as_weighted(topic_names),
                      weighted_hashtags + as_weighted(hashtag_names))
    return _serve(limit, topic_names, hashtag_names)


@app.post("/api/posts", response_model=PostsResponse)
async def query_posts(req: ContentRequest):
    return _serve(req.limit, req.topics, req.hashtags)


@app.post("/interactions", response_model=Optional[InteractionView])
async def record_interaction(ev: InteractionEvent):
    record = session.record(ev.event, ev.item)
    return record.to_view() if record else None


@app.get("/interests", response_model=InterestSet)
def interests():
    return session.analyze()


@app.post("/train", response_model=ClassifierState)
def train():
    session.request_retrain()
    return session.classifier.state()


@app.post("/next-batch", response_model=PostsResponse)
def next_batch(limit: int = 10):
    if limit < 1:
        raise HTTPException(status_code=422, detail="limit must be positive")
    source = LocalContentSource(get_posts(), settings=settings, rng=rng)
    return session.load_next_batch(source, limit)


@app.get("/status", response_model=SessionSnapshot)
def status():
    return session.snapshot()


@app.post("/reset")
def reset_system():
    global session
    session.close()
    session = FeedSession(settings)
    posts.clear()
    get_posts()
    return {"ok": True, "message": "System reset"}


def run():
    uvicorn.run(
        "feed_ranker.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=False,
        log_level=settings.LOG_LEVEL.lower(),
    )


if __name__ == "__main__":
    run()
