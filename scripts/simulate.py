"""
Chaos Simulation Script

Drives the full user journey against a running development server:
register -> verify email -> login -> concurrent order creation.
Run from project root: python scripts/simulate.py

Requires ENV_MODE=development (uses /api/dev/verification-token).

Author: Khalil_Bannouri
Version: 3.0.0
"""

import asyncio
import sys
import random
import time
import argparse
import uuid
from datetime import datetime
from typing import Any, Optional

import httpx

# Windows event loop fix
if sys.platform == "win32":
    asyncio.set_event_loop_policy(asyncio.WindowsSelectorEventLoopPolicy())

# Configuration
API_BASE_URL = "http://localhost:8001"
TOTAL_ORDERS = 50
PASSWORD = "Secret123!"

FIRST_NAMES = ["John", "Jane", "Mike", "Sarah", "Tom", "Emma", "David", "Lisa", "Chris", "Amy"]
LAST_NAMES = ["Smith", "Johnson", "Williams", "Brown", "Jones", "Garcia", "Miller", "Davis", "Wilson", "Taylor"]
MENU_ITEMS = [
    {"name": "Pizza Margherita", "price": 14.99},
    {"name": "Pepperoni Pizza", "price": 16.99},
    {"name": "Caesar Salad", "price": 8.99},
    {"name": "Garlic Bread", "price": 5.99},
    {"name": "Pasta Carbonara", "price": 13.99},
    {"name": "Tiramisu", "price": 7.99},
    {"name": "Coke", "price": 2.99},
    {"name": "Sparkling Water", "price": 3.49},
]


def generate_random_items() -> list[dict]:
    """Generate random order items."""
    items = []
    for _ in range(random.randint(1, 4)):
        item = random.choice(MENU_ITEMS).copy()
        item["quantity"] = random.randint(1, 3)
        items.append(item)
    return items


def generate_order_payload() -> dict[str, Any]:
    return {
        "customerName": f"{random.choice(FIRST_NAMES)} {random.choice(LAST_NAMES)}",
        "orderType": random.choice(["delivery", "pickup"]),
        "items": generate_random_items(),
    }


# =============================================================================
# USER JOURNEY
# =============================================================================

async def register_and_login(client: httpx.AsyncClient) -> Optional[str]:
    """Register a fresh user, verify the email and return a session token."""
    email = f"sim_{uuid.uuid4().hex[:10]}@example.com"

    print(f"\n1️⃣ Registering {email}...")
    response = await client.post(
        f"{API_BASE_URL}/api/auth/register",
        json={"name": "Simulation User", "email": email, "password": PASSWORD},
    )
    if response.status_code != 201:
        print(f"   ❌ Failed: {response.text[:200]}")
        return None
    data = response.json()
    print(f"   ✅ User {data['user']['id']} / Account {data['account']['id']}")
    if data.get("warning"):
        print(f"   ⚠️ Warning: {data['warning']}")

    print("\n2️⃣ Fetching verification token (dev endpoint)...")
    response = await client.get(
        f"{API_BASE_URL}/api/dev/verification-token",
        params={"email": email},
    )
    if response.status_code != 200:
        print(f"   ❌ Failed: {response.text[:200]}")
        return None
    token = response.json()["token"]

    print("\n3️⃣ Verifying email...")
    response = await client.get(
        f"{API_BASE_URL}/api/auth/verify-email",
        params={"token": token},
    )
    if response.status_code != 200:
        print(f"   ❌ Failed: {response.text[:200]}")
        return None
    print(f"   ✅ Verified: {response.json()['user']['emailVerified']}")

    print("\n4️⃣ Logging in...")
    response = await client.post(
        f"{API_BASE_URL}/api/auth/login",
        json={"email": email, "password": PASSWORD},
    )
    if response.status_code != 200:
        print(f"   ❌ Failed: {response.text[:200]}")
        return None
    print("   ✅ Session token received")
    return response.json()["token"]


async def send_order(
    client: httpx.AsyncClient,
    token: str,
    order_num: int,
) -> dict[str, Any]:
    """Create one order."""
    start_time = time.time()

    try:
        response = await client.post(
            f"{API_BASE_URL}/api/orders",
            json=generate_order_payload(),
            headers={"Authorization": f"Bearer {token}"},
            timeout=30.0,
        )
        elapsed = round(time.time() - start_time, 3)

        if response.status_code == 201:
            data = response.json()
            return {
                "order_num": order_num,
                "success": True,
                "order_id": data.get("id"),
                "total": data.get("totalAmount"),
                "time": elapsed,
            }
        return {
            "order_num": order_num,
            "success": False,
            "error": response.text[:100],
            "time": elapsed,
        }
    except httpx.HTTPError as e:
        elapsed = round(time.time() - start_time, 3)
        return {
            "order_num": order_num,
            "success": False,
            "error": str(e)[:100],
            "time": elapsed,
        }


# =============================================================================
# MAIN SIMULATION RUNNER
# =============================================================================

async def run_simulation(num_orders: int = TOTAL_ORDERS) -> dict[str, Any]:
    """
    Run the chaos simulation.

    Args:
        num_orders: Number of concurrent orders to create
    """
    print("=" * 70)
    print("🔥 CHAOS SIMULATION - HIGH CONCURRENCY TEST")
    print("=" * 70)
    print(f"📋 Total Orders: {num_orders}")
    print(f"🎯 Target: {API_BASE_URL}")
    print(f"⏰ Started: {datetime.now().strftime('%H:%M:%S')}")
    print("=" * 70)

    async with httpx.AsyncClient() as client:
        response = await client.get(f"{API_BASE_URL}/health")
        if response.status_code != 200:
            print(f"❌ Health check failed: {response.text}")
            return {"total": num_orders, "successful": 0, "failed": num_orders}

        token = await register_and_login(client)
        if token is None:
            print("\n❌ User journey failed. Fix issues before running simulation.")
            return {"total": num_orders, "successful": 0, "failed": num_orders}

        print("\n🚀 Firing orders...\n")
        start_time = time.time()
        tasks = [send_order(client, token, i + 1) for i in range(num_orders)]
        results = await asyncio.gather(*tasks)
        total_time = round(time.time() - start_time, 2)

        listing = await client.get(
            f"{API_BASE_URL}/api/orders",
            params={"limit": 1},
            headers={"Authorization": f"Bearer {token}"},
        )

    successful = [r for r in results if r["success"]]
    failed = [r for r in results if not r["success"]]

    print("\n" + "=" * 70)
    print("📊 SIMULATION RESULTS")
    print("=" * 70)
    print(f"\n✅ Successful Orders: {len(successful)}/{num_orders}")
    print(f"❌ Failed Orders: {len(failed)}/{num_orders}")
    print(f"⏱️  Total Time: {total_time}s")

    if successful:
        avg_time = round(sum(r["time"] for r in successful) / len(successful), 3)
        total_revenue = sum(r.get("total") or 0 for r in successful)
        print(f"\n📈 Performance Metrics:")
        print(f"   Average Response: {avg_time}s")
        print(f"   Fastest: {min(r['time'] for r in successful)}s")
        print(f"   Slowest: {max(r['time'] for r in successful)}s")
        print(f"   💰 Total Revenue: ${total_revenue:.2f}")

    if failed:
        print(f"\n⚠️  Failed Order Details (showing first 5):")
        for f in failed[:5]:
            print(f"   Order #{f['order_num']}: {f.get('error', 'Unknown error')}")

    if listing.status_code == 200:
        stored = listing.json()["total"]
        marker = "✅" if stored == len(successful) else "⚠️"
        print(f"\n{marker} Orders stored for account: {stored}")

    print("=" * 70)

    return {
        "total": num_orders,
        "successful": len(successful),
        "failed": len(failed),
        "total_time": total_time,
        "results": results,
    }


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Chaos Simulation Script")
    parser.add_argument("--orders", type=int, default=TOTAL_ORDERS, help="Number of orders")
    parser.add_argument("--url", default=API_BASE_URL, help="API base URL")
    args = parser.parse_args()

    API_BASE_URL = args.url.rstrip("/")
    summary = asyncio.run(run_simulation(args.orders))
    sys.exit(0 if summary["failed"] == 0 else 1)
