"""
Cart Chaos Simulation Script

Drives many concurrent cart sessions against a running API: each session
fills a cart from one to three restaurants, edits it, asks for a quote and
checks out. Reports single vs. multi-vendor checkouts, partial failures and
response times.

Run from project root (API on :8001, ENV_MODE=development):
    python scripts/simulate.py --sessions 50

Author: Khalil_Bannouri
Version: 1.0.0
"""

import argparse
import asyncio
import random
import sys
import time
import uuid
from datetime import datetime
from typing import Any

import httpx

# Configuration
API_BASE_URL = "http://localhost:8001"
TOTAL_SESSIONS = 50

RESTAURANTS = [
    {"id": "momo-house", "name": "Momo House", "delivery_fee": "50"},
    {"id": "burger-barn", "name": "Burger Barn", "delivery_fee": "60"},
    {"id": "pizza-point", "name": "Pizza Point"},
    {"id": "thakali-kitchen", "name": "Thakali Kitchen", "delivery_fee": "0"},
]
MENU = {
    "momo-house": [
        {"id": "veg-momo", "name": "Veg Momo", "price": "180", "vegetarian": True},
        {"id": "chicken-momo", "name": "Chicken Momo", "price": "220"},
        {"id": "jhol-momo", "name": "Jhol Momo", "price": "250"},
    ],
    "burger-barn": [
        {"id": "classic-burger", "name": "Classic Burger", "price": "350"},
        {"id": "fries", "name": "Fries", "price": "150", "vegetarian": True},
    ],
    "pizza-point": [
        {"id": "margherita", "name": "Margherita", "price": "650", "vegetarian": True},
        {"id": "pepperoni", "name": "Pepperoni", "price": "750"},
    ],
    "thakali-kitchen": [
        {"id": "thakali-set", "name": "Thakali Set", "price": "450"},
    ],
}
STREETS = ["Durbar Marg", "New Road", "Thamel Marg", "Lazimpat", "Baneshwor"]


def generate_delivery_context() -> dict[str, Any]:
    """Random checkout body."""
    return {
        "delivery_address": {
            "street": f"{random.randint(1, 200)} {random.choice(STREETS)}",
            "city": "Kathmandu",
            "state": "Bagmati",
            "zipCode": "44600",
            "coordinates": {
                "latitude": round(27.70 + random.random() / 20, 5),
                "longitude": round(85.30 + random.random() / 20, 5),
            },
        },
        "payment_method": random.choice([None, "cash_on_delivery", "esewa"]),
        "special_instructions": random.choice(["", "Ring the bell", "Leave at gate"]),
    }


async def fill_cart(client: httpx.AsyncClient, session_id: str) -> int:
    """Add random items from 1-3 restaurants; returns the vendor count."""
    restaurants = random.sample(RESTAURANTS, k=random.randint(1, 3))
    for restaurant in restaurants:
        for _ in range(random.randint(1, 4)):
            item = random.choice(MENU[restaurant["id"]])
            response = await client.post(
                f"/api/carts/{session_id}/items",
                json={"item": item, "restaurant": restaurant},
            )
            response.raise_for_status()

    # Occasionally bump a quantity the way a cart screen "+" would
    if random.random() < 0.5:
        restaurant = restaurants[0]
        cart = (await client.get(f"/api/carts/{session_id}")).json()
        line = cart["vendors"][0]["items"][0]
        await client.patch(
            f"/api/carts/{session_id}/items/{line['item_id']}",
            json={"vendor_id": restaurant["id"], "quantity": line["quantity"] + 1},
        )

    return len(restaurants)


async def run_session(client: httpx.AsyncClient, session_num: int) -> dict[str, Any]:
    """One customer session from empty cart to checkout."""
    session_id = f"sim-{uuid.uuid4().hex[:12]}"
    start_time = time.time()

    try:
        vendor_count = await fill_cart(client, session_id)

        response = await client.post(
            f"/api/carts/{session_id}/checkout",
            json=generate_delivery_context(),
            headers={"Authorization": f"Bearer sim-token-{session_num}"},
        )
        elapsed = round(time.time() - start_time, 3)
        data = response.json()

        if response.status_code != 200:
            return {
                "session_num": session_num,
                "success": False,
                "partial": False,
                "vendors": vendor_count,
                "error": str(data.get("detail", response.text))[:100],
                "time": elapsed,
            }

        return {
            "session_num": session_num,
            "success": data["success"],
            "partial": bool(data["order_ids"]) and not data["success"],
            "vendors": vendor_count,
            "orders": len(data["order_ids"]),
            "total": float(data["grand_total"]),
            "error": None if data["success"] else f"failed: {data['failed_vendor_ids']}",
            "time": elapsed,
        }

    except httpx.HTTPError as e:
        elapsed = round(time.time() - start_time, 3)
        return {
            "session_num": session_num,
            "success": False,
            "partial": False,
            "vendors": 0,
            "error": str(e)[:100],
            "time": elapsed,
        }


# =============================================================================
# MAIN SIMULATION RUNNER
# =============================================================================

async def run_simulation(num_sessions: int = TOTAL_SESSIONS) -> dict[str, Any]:
    """
    Run the chaos simulation.

    Args:
        num_sessions: Number of concurrent cart sessions
    """
    print("=" * 70)
    print("🔥 CART CHAOS SIMULATION - CONCURRENT SESSIONS")
    print("=" * 70)
    print(f"📋 Sessions: {num_sessions}")
    print(f"🎯 Target: {API_BASE_URL}")
    print(f"⏰ Started: {datetime.now().strftime('%H:%M:%S')}")
    print("=" * 70)

    start_time = time.time()

    async with httpx.AsyncClient(base_url=API_BASE_URL, timeout=30.0) as client:
        results = await asyncio.gather(
            *(run_session(client, i + 1) for i in range(num_sessions))
        )

    total_time = round(time.time() - start_time, 2)

    successful = [r for r in results if r["success"]]
    partial = [r for r in results if r["partial"]]
    failed = [r for r in results if not r["success"]]
    multi_vendor = [r for r in results if r["vendors"] > 1]

    print("\n" + "=" * 70)
    print("📊 SIMULATION RESULTS")
    print("=" * 70)

    print(f"\n✅ Fully placed: {len(successful)}/{num_sessions}")
    print(f"🟡 Partially placed: {len(partial)}/{num_sessions}")
    print(f"❌ Failed: {len(failed) - len(partial)}/{num_sessions}")
    print(f"🧺 Multi-vendor carts: {len(multi_vendor)}/{num_sessions}")
    print(f"⏱️  Total Time: {total_time}s")

    if successful:
        avg_time = round(sum(r["time"] for r in successful) / len(successful), 3)
        total_revenue = sum(r.get("total", 0) for r in successful)
        print("\n📈 Performance Metrics:")
        print(f"   Average Session: {avg_time}s")
        print(f"   Fastest: {min(r['time'] for r in successful)}s")
        print(f"   Slowest: {max(r['time'] for r in successful)}s")
        print(f"   💰 Total Value: Rs {total_revenue:.2f}")

    if failed:
        print("\n⚠️  Failure Details (showing first 5):")
        for f in failed[:5]:
            print(f"   Session #{f['session_num']}: {f.get('error', 'Unknown error')}")

    print("=" * 70)

    return {
        "total": num_sessions,
        "successful": len(successful),
        "partial": len(partial),
        "failed": len(failed),
        "total_time": total_time,
        "results": results,
    }


async def check_single_flow() -> bool:
    """Health check and one multi-vendor checkout before the chaos run."""
    print("\n" + "=" * 70)
    print("🧪 PRE-FLIGHT CHECKS")
    print("=" * 70)

    async with httpx.AsyncClient(base_url=API_BASE_URL, timeout=30.0) as client:
        print("\n1️⃣ Health Check...")
        response = await client.get("/health")
        if response.status_code != 200:
            print(f"   ❌ Failed: {response.text}")
            return False
        data = response.json()
        print(f"   ✅ Status: {data.get('status')}")
        print(f"   Storage: {data.get('storage')}")

        print("\n2️⃣ Two-vendor Quote...")
        session_id = f"preflight-{uuid.uuid4().hex[:8]}"
        for restaurant in RESTAURANTS[:2]:
            await client.post(
                f"/api/carts/{session_id}/items",
                json={"item": MENU[restaurant["id"]][0], "restaurant": restaurant},
            )
        response = await client.post(
            f"/api/carts/{session_id}/quote", json=generate_delivery_context()
        )
        if response.status_code == 200:
            data = response.json()
            print(f"   ✅ Multiple orders: {data.get('multiple_orders')}")
            print(f"   Grand total: Rs {data.get('grand_total')}")
        else:
            print(f"   ⚠️ Response: {response.text[:100]}")

        await client.delete(f"/api/carts/{session_id}")

    print("\n" + "=" * 70)
    return True


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Cart Chaos Simulation Script")
    parser.add_argument("--sessions", type=int, default=TOTAL_SESSIONS, help="Number of sessions")
    parser.add_argument("--skip-checks", action="store_true", help="Skip pre-flight checks")
    args = parser.parse_args()

    if not args.skip_checks:
        if not asyncio.run(check_single_flow()):
            print("\n❌ Pre-flight checks failed. Fix issues before running simulation.")
            sys.exit(1)
        print("\n✅ Pre-flight checks passed!")

    asyncio.run(run_simulation(num_sessions=args.sessions))
