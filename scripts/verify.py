"""
Order Data Verification Script

Verifies the integrity of the orders served to the kitchen display.
Run from project root: python scripts/verify.py
"""

import argparse
import sys
from collections import Counter
from datetime import datetime

import httpx

API_BASE_URL = "http://localhost:3000"
VALID_STATUSES = {"RECEIVED", "PREPARING", "COMPLETED", "OUT_OF_STOCK"}


def verify_orders(base_url: str = API_BASE_URL, limit: int = 1000) -> bool:
    """Fetch the kitchen listing and check it is consistent."""

    print("=" * 60)
    print("🔍 ORDER VERIFICATION REPORT")
    print("=" * 60)
    print(f"⏰ Timestamp: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}")
    print(f"🎯 Source: {base_url}/commandes")
    print("=" * 60)

    try:
        response = httpx.get(f"{base_url}/commandes", params={"limit": limit}, timeout=30.0)
        response.raise_for_status()
        orders = response.json()
    except httpx.HTTPError as e:
        print(f"\n❌ Could not fetch orders: {e}")
        return False

    problems = []

    # Statistics
    lines = sum(len(o["items"]) for o in orders)
    print(f"\n📊 STATISTICS:")
    print(f"   Orders: {len(orders)}")
    print(f"   Dish lines: {lines}")
    for status, count in sorted(Counter(o["status"] for o in orders).items()):
        print(f"   {status}: {count}")

    # One entry per order id
    duplicates = [oid for oid, n in Counter(o["id"] for o in orders).items() if n > 1]
    if duplicates:
        problems.append(f"{len(duplicates)} order ids listed more than once")

    # Valid statuses, non-empty orders
    for order in orders:
        if order["status"] not in VALID_STATUSES:
            problems.append(f"order {order['id']} has status {order['status']!r}")
        if not order["items"]:
            problems.append(f"order {order['id']} has no dishes")

    # Newest first
    created = [o["createdAt"] for o in orders]
    if created != sorted(created, reverse=True):
        problems.append("orders are not listed newest first")

    if lines >= limit:
        print(f"\n⚠️ Listing hit the {limit}-line limit: the oldest order may be partial")

    print(f"\n📋 RECENT ORDERS:")
    print("-" * 60)
    for order in orders[:5]:
        when = datetime.fromtimestamp(order["createdAt"] / 1000).strftime("%H:%M:%S")
        print(f"   {when}  table {order['table']:>4}  {order['status']:<13} {len(order['items'])} dishes")

    print("\n" + "=" * 60)
    if problems:
        for problem in problems:
            print(f"❌ {problem}")
    else:
        print("✅ VERIFICATION COMPLETE - no problems found")
    print("=" * 60)

    return not problems


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Order Data Verification Script")
    parser.add_argument("--url", default=API_BASE_URL, help="API base URL")
    parser.add_argument("--limit", type=int, default=1000, help="Dish lines to scan")
    args = parser.parse_args()

    sys.exit(0 if verify_orders(args.url.rstrip("/"), args.limit) else 1)
