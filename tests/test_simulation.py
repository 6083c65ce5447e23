from __future__ import annotations

import asyncio

import httpx

from feed_ranker import main
from simulation.simulate_users import simulate


async def run(rounds):
    transport = httpx.ASGITransport(app=main.app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        await client.post("/reset")
        return await simulate(client, likes={"science"}, dislikes={"politics"}, rounds=rounds, batch=10, seed=1)


def test_simulated_user_trains_the_model():
    hit_rates, status = asyncio.run(run(rounds=3))
    main.session.close()

    assert len(hit_rates) == 3
    assert all(0.0 <= h <= 1.0 for h in hit_rates)
    assert status["interaction_count"] >= 10
    assert status["classifier"]["trained"] is True
    assert status["classifier"]["generation"] >= 1
