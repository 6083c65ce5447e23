from locust import HttpUser, task, between
import json
import random

TOPICS = ["sports", "politics", "music", "science", "travel", "food", "gaming", "finance", "art", "health"]


class FeedUser(HttpUser):
    wait_time = between(0.01, 0.2)

    @task(3)
    def get_feed(self):
        picks = random.sample(TOPICS, 2)
        weights = [{"name": t, "weight": round(random.uniform(0.1, 2.0), 2)} for t in picks]
        self.client.get("/api/posts", params={"limit": 10, "topics": json.dumps(weights)}, name="/api/posts")

    @task(1)
    def legacy_feed(self):
        self.client.get("/api/posts", params={"limit": 5, "topics": ",".join(random.sample(TOPICS, 2))},
                        name="/api/posts [legacy]")

    @task(1)
    def send_interaction(self):
        item = {"id": f"post-{random.randint(1, 200)}", "topics": random.sample(TOPICS, 1), "hashtags": []}
        ev = random.choice(["like", "interested", "not_interested", "comment"])
        self.client.post("/interactions", json={"event": ev, "item": item})

    @task(1)
    def interests(self):
        self.client.get("/interests")
