#!/usr/bin/env python3
"""
Traffic generator for the store service
Seeds a product catalog, then simulates clients placing, browsing, editing
and reporting on orders
"""

import requests
import random
import time
import threading
from datetime import datetime, timedelta

API_URL = "http://localhost:8000"

PAYMENT_METHODS = ["Payme", "Click", "Uzum"]

CATALOG = [
    {"name": "Laptop", "price": 999.99, "category": "Electronics"},
    {"name": "Smartphone", "price": 599.99, "category": "Electronics"},
    {"name": "Headphones", "price": 99.99, "category": "Electronics"},
    {"name": "Monitor", "price": 299.99, "category": "Electronics"},
    {"name": "Keyboard", "price": 79.99, "category": "Electronics"},
    {"name": "Mouse", "price": 29.99, "category": "Electronics"},
    {"name": "Desk Chair", "price": 199.99, "category": "Furniture"},
    {"name": "Standing Desk", "price": 449.00, "category": "Furniture"},
    {"name": "Bookshelf", "price": 120.50, "category": "Furniture"},
    {"name": "Coffee Beans", "price": 14.25, "category": "Grocery"},
    {"name": "Green Tea", "price": 6.75, "category": "Grocery"},
]

CUSTOMERS = ["Aziz", "Dilnoza", "Jasur", "Malika", "Rustam", "Sevara", "Timur"]

# Weight for actions
ACTION_WEIGHTS = {
    "place_order": 0.35,
    "browse_products": 0.25,
    "list_orders": 0.15,
    "order_report": 0.1,
    "product_report": 0.05,
    "update_order": 0.05,
    "delete_order": 0.05,
}

def log(message):
    timestamp = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
    print(f"[{timestamp}] {message}")

def seed_catalog():
    """Create the catalog unless products already exist."""
    try:
        response = requests.get(f"{API_URL}/api/products", params={"limit": 100}, timeout=5)
        response.raise_for_status()
        existing = response.json()
        if existing:
            log(f"Catalog already has {len(existing)} products")
            return existing

        created = []
        for item in CATALOG:
            response = requests.post(f"{API_URL}/api/products", json=item, timeout=5)
            if response.status_code == 201:
                created.append(response.json())
        log(f"Seeded {len(created)} products")
        return created
    except Exception as e:
        log(f"Failed to seed catalog - {e}")
        return []

class Client:
    def __init__(self, client_id, products):
        self.client_id = client_id
        self.products = products
        self.order_ids = []

    def place_order(self):
        if not self.products:
            return False
        chosen = random.choices(self.products, k=random.randint(1, 4))
        payload = {
            "product_ids": [p["_id"] for p in chosen],
            "total_price": round(sum(p["price"] for p in chosen), 2),
            "customer_name": random.choice(CUSTOMERS),
            "payment_method": random.choice(PAYMENT_METHODS),
        }

        # Occasionally send an invalid order to exercise validation (~5%)
        if random.random() < 0.05:
            payload["payment_method"] = "Cash"

        try:
            response = requests.post(f"{API_URL}/api/orders", json=payload, timeout=5)
            if response.status_code == 201:
                order = response.json()["order"]
                self.order_ids.append(order["_id"])
                log(f"Client {self.client_id}: Placed order {order['_id']} ({payload['payment_method']})")
                return True
            log(f"Client {self.client_id}: Order rejected - {response.status_code} {response.json().get('message')}")
        except Exception as e:
            log(f"Client {self.client_id}: Failed to place order - {e}")
        return False

    def browse_products(self):
        params = {"page": random.randint(1, 2), "limit": 5}
        if random.random() < 0.5:
            params["category"] = random.choice(["Electronics", "Furniture", "Grocery"])
        try:
            response = requests.get(f"{API_URL}/api/products", params=params, timeout=5)
            if response.status_code == 200:
                log(f"Client {self.client_id}: Browsed {len(response.json())} products")
                return True
        except Exception as e:
            log(f"Client {self.client_id}: Failed to browse products - {e}")
        return False

    def list_orders(self):
        params = {"page": 1, "limit": 10}
        if random.random() < 0.3:
            params["payment_method"] = random.choice(PAYMENT_METHODS)
        try:
            response = requests.get(f"{API_URL}/api/orders", params=params, timeout=5)
            if response.status_code == 200:
                pagination = response.json()["pagination"]
                log(f"Client {self.client_id}: Listed orders ({pagination['total']} total)")
                return True
        except Exception as e:
            log(f"Client {self.client_id}: Failed to list orders - {e}")
        return False

    def order_report(self):
        params = {}
        if random.random() < 0.5:
            params["startDate"] = (datetime.utcnow() - timedelta(hours=1)).isoformat()
        try:
            response = requests.get(f"{API_URL}/api/orders/report", params=params, timeout=10)
            if response.status_code == 200:
                rows = response.json()["data"]
                log(f"Client {self.client_id}: Order report with {len(rows)} payment methods")
                return True
        except Exception as e:
            log(f"Client {self.client_id}: Failed to fetch order report - {e}")
        return False

    def product_report(self):
        try:
            response = requests.get(f"{API_URL}/api/products/report", timeout=10)
            if response.status_code == 200:
                summary = response.json()["summary"]
                log(f"Client {self.client_id}: Product report across {summary['totalCategories']} categories")
                return True
        except Exception as e:
            log(f"Client {self.client_id}: Failed to fetch product report - {e}")
        return False

    def update_order(self):
        if not self.order_ids:
            return self.place_order()
        order_id = random.choice(self.order_ids)
        try:
            response = requests.put(
                f"{API_URL}/api/orders/{order_id}",
                json={"customer_name": random.choice(CUSTOMERS)},
                timeout=5
            )
            if response.status_code == 200:
                log(f"Client {self.client_id}: Updated order {order_id}")
                return True
        except Exception as e:
            log(f"Client {self.client_id}: Failed to update order - {e}")
        return False

    def delete_order(self):
        if not self.order_ids:
            return False
        order_id = self.order_ids.pop(random.randrange(len(self.order_ids)))
        try:
            response = requests.delete(f"{API_URL}/api/orders/{order_id}", timeout=5)
            if response.status_code == 200:
                log(f"Client {self.client_id}: Deleted order {order_id}")
                return True
        except Exception as e:
            log(f"Client {self.client_id}: Failed to delete order - {e}")
        return False

    def random_action(self):
        action = random.choices(
            list(ACTION_WEIGHTS.keys()),
            weights=list(ACTION_WEIGHTS.values())
        )[0]
        return getattr(self, action)()

def client_session(client_id, products, duration_seconds):
    client = Client(client_id, products)
    end_time = time.time() + duration_seconds
    while time.time() < end_time:
        client.random_action()
        time.sleep(random.uniform(0.3, 1.2))

def generate_traffic(num_clients=5, session_duration=60):
    """Generate traffic with multiple concurrent clients"""
    products = seed_catalog()
    if not products:
        log("No products available, stopping")
        return

    log(f"Starting traffic generation with {num_clients} concurrent clients")
    log(f"Session duration: {session_duration} seconds")

    threads = []
    try:
        while True:
            while len([t for t in threads if t.is_alive()]) < num_clients:
                client_id = f"client_{random.randint(1000, 9999)}"
                thread = threading.Thread(
                    target=client_session,
                    args=(client_id, products, session_duration)
                )
                thread.start()
                threads.append(thread)
                time.sleep(random.uniform(1, 3))

            # Clean up finished threads
            threads = [t for t in threads if t.is_alive()]
            time.sleep(5)

    except KeyboardInterrupt:
        log("\nStopping traffic generation...")
        log("Waiting for active sessions to complete...")
        for thread in threads:
            thread.join(timeout=10)
        log("Traffic generation stopped")

if __name__ == "__main__":
    import argparse

    parser = argparse.ArgumentParser(description="Generate traffic for the store service")
    parser.add_argument(
        "--clients",
        type=int,
        default=5,
        help="Number of concurrent clients (default: 5)"
    )
    parser.add_argument(
        "--duration",
        type=int,
        default=60,
        help="Session duration in seconds (default: 60)"
    )
    parser.add_argument(
        "--url",
        type=str,
        default="http://localhost:8000",
        help="API URL (default: http://localhost:8000)"
    )

    args = parser.parse_args()
    API_URL = args.url

    log("=" * 60)
    log("Store Service Traffic Generator")
    log("=" * 60)
    log(f"API URL: {API_URL}")
    log(f"Concurrent Clients: {args.clients}")
    log(f"Session Duration: {args.duration}s")
    log("=" * 60)

    generate_traffic(args.clients, args.duration)
