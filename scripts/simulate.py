"""
Service Simulation Script

Simulates a busy service: many tables order at once, the kitchen moves the
orders through their statuses and every table polls its order status.
Run from project root: python scripts/simulate.py
"""

import asyncio
import sys
import random
import time
import argparse
from datetime import datetime
from typing import Any

import httpx

# Windows event loop fix
if sys.platform == "win32":
    asyncio.set_event_loop_policy(asyncio.WindowsSelectorEventLoopPolicy())

# Configuration
API_BASE_URL = "http://localhost:3000"
TOTAL_ORDERS = 50
TABLES = [str(n) for n in range(1, 21)]

# Sample menu
MENU_ITEMS = [
    {"plat_id": "P01", "plat_nom": "Pizza Margherita", "prix_unitaire": 14.99},
    {"plat_id": "P02", "plat_nom": "Pasta Carbonara", "prix_unitaire": 13.99},
    {"plat_id": "P03", "plat_nom": "Steak Frites", "prix_unitaire": 22.50},
    {"plat_id": "P04", "plat_nom": "Salade César", "prix_unitaire": 8.99},
    {"plat_id": "P05", "plat_nom": "Tiramisu", "prix_unitaire": 7.99},
    {"plat_id": "P06", "plat_nom": "Coca", "prix_unitaire": 2.99},
]
SIDES = ["", "Frites", "Salade", "Frites, Salade", "Riz, Légumes"]
COMMENTS = ["", "", "Sans oignons", "Bien cuit", "Allergie arachides"]
KITCHEN_FLOW = ["PREPARING", "COMPLETED"]
KITCHEN_MESSAGES = [None, "Votre plat arrive", "Encore 5 minutes"]


def generate_random_items() -> list[dict]:
    """Generate random dishes for one order."""
    items = []
    for _ in range(random.randint(1, 4)):
        dish = random.choice(MENU_ITEMS)
        qty = random.randint(1, 3)
        items.append({
            **dish,
            "quantite": qty,
            "prix_total": round(qty * dish["prix_unitaire"], 2),
            "accompagnements": random.choice(SIDES),
            "commentaire": random.choice(COMMENTS),
        })
    return items


# =============================================================================
# TABLE SIDE
# =============================================================================

async def send_order(client: httpx.AsyncClient, order_num: int) -> dict[str, Any]:
    """Submit one order from a random table."""
    table = random.choice(TABLES)
    items = generate_random_items()
    start_time = time.time()

    try:
        response = await client.post(
            f"{API_BASE_URL}/confirmCommande",
            json={"table_numero": table, "items": items},
            timeout=30.0
        )
        elapsed = round(time.time() - start_time, 3)

        if response.status_code == 200:
            data = response.json()
            return {
                "order_num": order_num,
                "success": True,
                "order_id": data.get("commande_id"),
                "table": table,
                "lines": data.get("inserted"),
                "total": sum(item["prix_total"] for item in items),
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


async def poll_table(client: httpx.AsyncClient, table: str) -> dict[str, Any]:
    """Fetch the latest status of a table, as the menu does."""
    response = await client.get(f"{API_BASE_URL}/order-status", params={"table": table}, timeout=30.0)
    return response.json()


# =============================================================================
# KITCHEN SIDE
# =============================================================================

async def advance_order(client: httpx.AsyncClient, order_id: str) -> list[int]:
    """Move one order through the kitchen flow, returning HTTP status codes."""
    codes = []
    for status in KITCHEN_FLOW:
        await asyncio.sleep(random.uniform(0.0, 0.2))
        response = await client.patch(
            f"{API_BASE_URL}/commandes/{order_id}/status",
            json={"status": status, "message": random.choice(KITCHEN_MESSAGES)},
            timeout=30.0
        )
        codes.append(response.status_code)
    return codes


# =============================================================================
# MAIN SIMULATION RUNNER
# =============================================================================

async def run_simulation(num_orders: int = TOTAL_ORDERS) -> dict[str, Any]:
    """
    Run the simulation.

    Args:
        num_orders: Number of orders to submit concurrently
    """
    print("=" * 70)
    print("🔥 SERVICE SIMULATION - CONCURRENT TABLES")
    print("=" * 70)
    print(f"📋 Total Orders: {num_orders}")
    print(f"🎯 Target: {API_BASE_URL}")
    print(f"⏰ Started: {datetime.now().strftime('%H:%M:%S')}")
    print("=" * 70)

    start_time = time.time()

    async with httpx.AsyncClient() as client:
        print("\n🚀 Tables are ordering...\n")
        results = await asyncio.gather(*[send_order(client, i + 1) for i in range(num_orders)])

        successful = [r for r in results if r["success"]]
        print("👨‍🍳 Kitchen is working...\n")
        kitchen = await asyncio.gather(*[advance_order(client, r["order_id"]) for r in successful])

        print("📱 Tables are polling...\n")
        tables = sorted({r["table"] for r in successful})
        statuses = await asyncio.gather(*[poll_table(client, t) for t in tables])

    total_time = round(time.time() - start_time, 2)
    failed = [r for r in results if not r["success"]]
    kitchen_errors = sum(1 for codes in kitchen for code in codes if code != 200)

    # Print results
    print("=" * 70)
    print("📊 SIMULATION RESULTS")
    print("=" * 70)

    print(f"\n✅ Successful Orders: {len(successful)}/{num_orders}")
    print(f"❌ Failed Orders: {len(failed)}/{num_orders}")
    print(f"👨‍🍳 Kitchen transition errors: {kitchen_errors}")
    print(f"⏱️  Total Time: {total_time}s")

    if successful:
        avg_time = round(sum(r["time"] for r in successful) / len(successful), 3)
        print(f"\n📈 Performance Metrics:")
        print(f"   Average Response: {avg_time}s")
        print(f"   Fastest: {min(r['time'] for r in successful)}s")
        print(f"   Slowest: {max(r['time'] for r in successful)}s")
        print(f"   Dish lines: {sum(r['lines'] for r in successful)}")
        print(f"   💰 Total Ordered: {sum(r['total'] for r in successful):.2f}")

    print(f"\n📱 Table statuses:")
    for table, status in zip(tables, statuses):
        if status.get("empty"):
            print(f"   Table {table}: no order")
        else:
            print(f"   Table {table}: {status['status']} {status['message']}".rstrip())

    if failed:
        print(f"\n⚠️  Failed Order Details (showing first 5):")
        for f in failed[:5]:
            print(f"   Order #{f['order_num']}: {f.get('error', 'Unknown error')}")

    print("\n" + "=" * 70)
    print("🔍 VERIFICATION: python scripts/verify.py")
    print("=" * 70)

    return {
        "total": num_orders,
        "successful": len(successful),
        "failed": len(failed),
        "total_time": total_time,
        "results": results,
    }


async def test_single_flow() -> bool:
    """Walk one order through the whole flow before the simulation."""
    print("\n" + "=" * 70)
    print("🧪 TESTING SINGLE FLOW")
    print("=" * 70)

    async with httpx.AsyncClient() as client:
        print("\n1️⃣ Liveness...")
        response = await client.get(f"{API_BASE_URL}/ping")
        if response.status_code != 200:
            print(f"   ❌ Failed: {response.text}")
            return False
        print("   ✅ Server is up")

        print("\n2️⃣ Single order...")
        result = await send_order(client, 0)
        if not result["success"]:
            print(f"   ❌ Failed: {result['error']}")
            return False
        print(f"   ✅ Order {result['order_id']} ({result['lines']} lines) for table {result['table']}")

        print("\n3️⃣ Kitchen transition...")
        codes = await advance_order(client, result["order_id"])
        print(f"   {'✅' if all(c == 200 for c in codes) else '❌'} Responses: {codes}")

        print("\n4️⃣ Table poll...")
        status = await poll_table(client, result["table"])
        print(f"   ✅ {status}")

    print("\n" + "=" * 70)
    return True


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Service Simulation Script")
    parser.add_argument("--orders", type=int, default=TOTAL_ORDERS, help="Number of orders")
    parser.add_argument("--url", default=API_BASE_URL, help="API base URL")
    parser.add_argument("--skip-tests", action="store_true", help="Skip the single-flow check")
    args = parser.parse_args()

    API_BASE_URL = args.url.rstrip("/")

    if not args.skip_tests:
        if not asyncio.run(test_single_flow()):
            print("\n❌ Pre-flight check failed. Fix issues before running simulation.")
            sys.exit(1)
        print("\n✅ Pre-flight check passed!")

    asyncio.run(run_simulation(num_orders=args.orders))
