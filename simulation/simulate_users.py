import asyncio
import httpx
import random

API = "http://127.0.0.1:8000"
ROUNDS = 6
BATCH = 10


async def react(client, item, likes, dislikes, rnd):
    await client.post("/interactions", json={"event": "view_start", "item": item})
    topics = set(item.get("topics", []))
    if topics & likes and rnd.random() < 0.9:
        await client.post("/interactions", json={"event": "like", "item": item})
        await client.post("/interactions", json={"event": "interested", "item": item})
    elif topics & dislikes and rnd.random() < 0.9:
        await client.post("/interactions", json={"event": "not_interested", "item": item})
    await client.post("/interactions", json={"event": "view_end", "item": item})


async def simulate(client, likes, dislikes=(), rounds=ROUNDS, batch=BATCH, seed=None):
    """Play one user with fixed tastes through several feed batches.

    Returns the share of liked topics in each batch and the final status.
    """
    rnd = random.Random(seed)
    likes, dislikes = set(likes), set(dislikes)
    hit_rates = []
    for _ in range(rounds):
        r = await client.post(f"/next-batch?limit={batch}")
        r.raise_for_status()
        feed = r.json()["posts"]
        hits = sum(1 for item in feed if set(item.get("topics", [])) & likes)
        hit_rates.append(hits / len(feed) if feed else 0.0)
        for item in feed:
            await react(client, item, likes, dislikes, rnd)
    status = (await client.get("/status")).json()
    return hit_rates, status


async def main():
    async with httpx.AsyncClient(base_url=API, timeout=60.0) as client:
        await client.post("/reset")
        hit_rates, status = await simulate(client, likes={"science"}, dislikes={"politics"})
        print("hit rate per batch:", [round(h, 2) for h in hit_rates])
        print("classifier:", status["classifier"])
        print("interests:", status["last_interest"])

if __name__ == "__main__":
    asyncio.run(main())
