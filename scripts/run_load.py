# scripts/run_load.py
# Generates continuous traffic against a running storefront.
# Useful for filling the dashboards with something to look at.
#
# Run with: python scripts/run_load.py [base_url]

import random
import statistics
import sys
import time

import requests

BASE_URL = sys.argv[1] if len(sys.argv) > 1 else "http://127.0.0.1:8080"

# Seeded catalog ids, plus one that doesn't exist to get some 404s
PRODUCT_IDS = [1, 2, 3, 4, 999]

# Track latencies for reporting
latency_history = {"index": [], "checkout": [], "success": []}
request_count = 0
start_time = time.time()


def timed(method: str, path: str, **kwargs):
    """Make one request and return (latency_ms, response) or (None, None)"""
    try:
        start = time.time()
        response = requests.request(method, f"{BASE_URL}{path}", timeout=10, **kwargs)
        elapsed_ms = (time.time() - start) * 1000
        return elapsed_ms, response
    except requests.RequestException:
        return None, None


def record(key: str, latency):
    global request_count
    if latency is None:
        return
    latency_history[key].append(latency)
    # Keep last 100 readings per route
    if len(latency_history[key]) > 100:
        latency_history[key] = latency_history[key][-100:]
    request_count += 1


def checkout_once():
    """POST /checkout, then follow the redirect to /success ourselves"""
    latency, response = timed(
        "POST", "/checkout",
        data={"product_id": random.choice(PRODUCT_IDS), "quantity": random.randint(1, 3)},
        allow_redirects=False,
    )
    record("checkout", latency)

    if response is not None and response.status_code == 302:
        latency, _ = timed("GET", response.headers["Location"].replace(BASE_URL, ""))
        record("success", latency)


def print_stats():
    runtime = time.time() - start_time

    print(f"\n{'─'*50}")
    print(f"Runtime: {runtime:.0f}s | Total requests: {request_count}")

    for key, latencies in latency_history.items():
        if latencies:
            recent = latencies[-20:]
            avg = statistics.mean(recent)
            print(f"/{key}: {avg:.1f}ms avg (last 20 requests)")

    print(f"{'─'*50}")


if __name__ == "__main__":
    print(f"Sending traffic to {BASE_URL} - Ctrl+C to stop")
    batch_counter = 0
    try:
        while True:
            for _ in range(3):
                latency, _ = timed("GET", "/")
                record("index", latency)
            for _ in range(2):
                checkout_once()

            batch_counter += 1
            if batch_counter % 10 == 0:
                print_stats()
            time.sleep(0.5)
    except KeyboardInterrupt:
        print_stats()
