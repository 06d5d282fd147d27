"""
API tests for /api/orders
"""
from datetime import datetime
from unittest.mock import patch

from bson import ObjectId
from fastapi.testclient import TestClient
from pymongo.errors import ServerSelectionTimeoutError

from database import get_db
from main import app
from models import ORDERS_COLLECTION


def order_payload(ids, **overrides):
    payload = {
        "product_ids": [str(pid) for pid in ids],
        "total_price": 120.5,
        "customer_name": "Malika",
        "payment_method": "Payme",
    }
    payload.update(overrides)
    return payload


class TestCreateOrder:
    """Test POST /api/orders"""

    def test_creates_order_with_ids_in_input_order(self, client, db, insert_product):
        # Arrange
        laptop = insert_product(name="Laptop")
        mouse = insert_product(name="Mouse", price=29.99)
        ids = [mouse["_id"], laptop["_id"], mouse["_id"]]

        # Act
        response = client.post("/api/orders", json=order_payload(ids))

        # Assert
        assert response.status_code == 201
        body = response.json()
        assert body["message"] == "Order created successfully"
        assert body["order"]["product_ids"] == [str(pid) for pid in ids]
        assert body["order"]["payment_method"] == "Payme"
        assert body["order"]["total_price"] == 120.5
        assert body["order"]["created_at"]

        stored = db[ORDERS_COLLECTION].find_one({"_id": ObjectId(body["order"]["_id"])})
        assert stored["product_ids"] == ids

    def test_member_name_is_stored_as_canonical_value(self, client, insert_product):
        product = insert_product()

        response = client.post("/api/orders", json=order_payload([product["_id"]], payment_method="UZUM"))

        assert response.status_code == 201
        assert response.json()["order"]["payment_method"] == "Uzum"

    def test_ids_are_trimmed(self, client, insert_product):
        product = insert_product()
        payload = order_payload([], product_ids=[f" {product['_id']} "])

        response = client.post("/api/orders", json=payload)

        assert response.status_code == 201
        assert response.json()["order"]["product_ids"] == [str(product["_id"])]

    def test_missing_fields(self, client, db):
        response = client.post("/api/orders", json={"customer_name": "Malika"})

        assert response.status_code == 400
        assert response.json()["message"] == "Missing required fields"
        assert response.json()["missing_fields"] == ["product_ids", "total_price", "payment_method"]
        assert db[ORDERS_COLLECTION].count_documents({}) == 0

    def test_invalid_id_format(self, client, db):
        response = client.post("/api/orders", json=order_payload([], product_ids=["abc"]))

        assert response.status_code == 400
        assert response.json()["message"] == "Invalid product ID format"
        assert "abc" in response.json()["error"]
        assert db[ORDERS_COLLECTION].count_documents({}) == 0

    def test_unknown_products_are_listed(self, client, db, insert_product):
        product = insert_product()
        ghost = ObjectId()

        response = client.post("/api/orders", json=order_payload([product["_id"], ghost]))

        assert response.status_code == 400
        assert response.json() == {
            "message": "Some product IDs do not exist in the database",
            "invalid_ids": [str(ghost)],
        }
        assert db[ORDERS_COLLECTION].count_documents({}) == 0

    def test_unsupported_payment_method(self, client, db, insert_product):
        product = insert_product()

        response = client.post("/api/orders", json=order_payload([product["_id"]], payment_method="Cash"))

        assert response.status_code == 400
        assert response.json() == {"message": "Unsupported payment method: Cash"}
        assert db[ORDERS_COLLECTION].count_documents({}) == 0

    def test_wrong_types_are_client_errors(self, client):
        response = client.post("/api/orders", json={"product_ids": "not-a-list"})

        assert response.status_code == 400
        assert response.json()["message"] == "Invalid request"

    def test_store_failure_is_500_with_message(self, client, insert_product):
        product = insert_product()

        with patch("services.order_service.ensure_products_exist",
                   side_effect=ServerSelectionTimeoutError("connection refused")):
            response = client.post("/api/orders", json=order_payload([product["_id"]]))

        assert response.status_code == 500
        assert response.json() == {"message": "connection refused"}

    def test_unexpected_failure_is_500_json(self, db):
        app.dependency_overrides[get_db] = lambda: db
        unsafe_client = TestClient(app, raise_server_exceptions=False)

        try:
            with patch("services.order_service.OrderService.list_orders",
                       side_effect=RuntimeError("shaping blew up")):
                response = unsafe_client.get("/api/orders")
        finally:
            app.dependency_overrides.clear()

        assert response.status_code == 500
        assert response.headers["content-type"].startswith("application/json")
        assert response.json() == {"message": "shaping blew up"}


class TestListOrders:
    """Test GET /api/orders"""

    def test_newest_first_with_pagination(self, client, insert_product, insert_order):
        product = insert_product()
        for day in range(1, 4):
            insert_order([product["_id"]], total_price=day, created_at=datetime(2024, 1, day))

        response = client.get("/api/orders", params={"page": 1, "limit": 2})

        assert response.status_code == 200
        body = response.json()
        assert [order["total_price"] for order in body["data"]] == [3, 2]
        assert body["pagination"] == {"total": 3, "page": 1, "pages": 2}

    def test_second_page(self, client, insert_product, insert_order):
        product = insert_product()
        for day in range(1, 4):
            insert_order([product["_id"]], total_price=day, created_at=datetime(2024, 1, day))

        body = client.get("/api/orders", params={"page": 2, "limit": 2}).json()

        assert [order["total_price"] for order in body["data"]] == [1]
        assert body["pagination"] == {"total": 3, "page": 2, "pages": 2}

    def test_filters_by_payment_method(self, client, insert_product, insert_order):
        product = insert_product()
        insert_order([product["_id"]], payment_method="Payme")
        insert_order([product["_id"]], payment_method="Click")

        body = client.get("/api/orders", params={"payment_method": "Click"}).json()

        assert [order["payment_method"] for order in body["data"]] == ["Click"]
        assert body["pagination"]["total"] == 1

    def test_member_name_filter_finds_orders_created_with_it(self, client, insert_product):
        product = insert_product()
        created = client.post("/api/orders", json=order_payload([product["_id"]], payment_method="PAYME"))
        assert created.status_code == 201

        body = client.get("/api/orders", params={"payment_method": "PAYME"}).json()

        assert body["pagination"]["total"] == 1
        assert body["data"][0]["payment_method"] == "Payme"

    def test_unknown_filter_matches_nothing(self, client, insert_product, insert_order):
        product = insert_product()
        insert_order([product["_id"]], payment_method="Payme")

        body = client.get("/api/orders", params={"payment_method": "Cash"}).json()

        assert body["data"] == []
        assert body["pagination"] == {"total": 0, "page": 1, "pages": 0}

    def test_products_are_resolved(self, client, insert_product, insert_order):
        laptop = insert_product(name="Laptop", price=999.99, category="Electronics")
        insert_order([laptop["_id"], laptop["_id"]])

        (order,) = client.get("/api/orders").json()["data"]

        assert order["product_ids"] == [
            {"_id": str(laptop["_id"]), "name": "Laptop", "price": 999.99, "category": "Electronics"},
            {"_id": str(laptop["_id"]), "name": "Laptop", "price": 999.99, "category": "Electronics"},
        ]

    def test_invalid_page_is_rejected(self, client):
        response = client.get("/api/orders", params={"page": 0})

        assert response.status_code == 400


class TestGetOrder:
    """Test GET /api/orders/{id}"""

    def test_returns_order_with_products(self, client, insert_product, insert_order):
        chair = insert_product(name="Chair", price=50, category="Furniture")
        order = insert_order([chair["_id"]], total_price=50, payment_method="Click")

        response = client.get(f"/api/orders/{order['_id']}")

        assert response.status_code == 200
        assert response.json()["_id"] == str(order["_id"])
        assert response.json()["product_ids"][0]["name"] == "Chair"

    def test_dangling_reference_is_dropped(self, client, insert_product, insert_order):
        chair = insert_product(name="Chair")
        order = insert_order([chair["_id"], ObjectId()])

        response = client.get(f"/api/orders/{order['_id']}")

        assert [p["name"] for p in response.json()["product_ids"]] == ["Chair"]

    def test_unknown_order(self, client):
        response = client.get(f"/api/orders/{ObjectId()}")

        assert response.status_code == 404
        assert response.json() == {"message": "Order not found"}

    def test_malformed_id_is_not_found(self, client):
        assert client.get("/api/orders/xyz").status_code == 404


class TestUpdateOrder:
    """Test PUT /api/orders/{id}"""

    def test_only_supplied_fields_change(self, client, db, insert_product, insert_order):
        product = insert_product()
        order = insert_order([product["_id"]], total_price=100, payment_method="Payme")

        response = client.put(f"/api/orders/{order['_id']}", json={"customer_name": "Rustam"})

        assert response.status_code == 200
        assert response.json()["message"] == "Order updated successfully"
        stored = db[ORDERS_COLLECTION].find_one({"_id": order["_id"]})
        assert stored["customer_name"] == "Rustam"
        assert stored["product_ids"] == [product["_id"]]
        assert stored["total_price"] == 100
        assert stored["payment_method"] == "Payme"
        assert stored["created_at"] == order["created_at"]

    def test_zero_total_price_is_applied(self, client, db, insert_product, insert_order):
        product = insert_product()
        order = insert_order([product["_id"]], total_price=100)

        response = client.put(f"/api/orders/{order['_id']}", json={"total_price": 0})

        assert response.status_code == 200
        assert db[ORDERS_COLLECTION].find_one({"_id": order["_id"]})["total_price"] == 0

    def test_replaces_products_after_check(self, client, insert_product, insert_order):
        old = insert_product(name="Old")
        new = insert_product(name="New")
        order = insert_order([old["_id"]])

        response = client.put(f"/api/orders/{order['_id']}", json={"product_ids": [str(new["_id"])]})

        assert response.status_code == 200
        assert [p["name"] for p in response.json()["order"]["product_ids"]] == ["New"]

    def test_unknown_products_leave_order_unchanged(self, client, db, insert_product, insert_order):
        product = insert_product()
        order = insert_order([product["_id"]])
        ghost = ObjectId()

        response = client.put(f"/api/orders/{order['_id']}", json={"product_ids": [str(ghost)]})

        assert response.status_code == 400
        assert response.json()["invalid_ids"] == [str(ghost)]
        assert db[ORDERS_COLLECTION].find_one({"_id": order["_id"]})["product_ids"] == [product["_id"]]

    def test_unsupported_payment_method(self, client, db, insert_product, insert_order):
        product = insert_product()
        order = insert_order([product["_id"]], payment_method="Click")

        response = client.put(f"/api/orders/{order['_id']}", json={"payment_method": "Visa"})

        assert response.status_code == 400
        assert db[ORDERS_COLLECTION].find_one({"_id": order["_id"]})["payment_method"] == "Click"

    def test_empty_product_list_is_rejected(self, client, insert_product, insert_order):
        product = insert_product()
        order = insert_order([product["_id"]])

        response = client.put(f"/api/orders/{order['_id']}", json={"product_ids": []})

        assert response.status_code == 400
        assert response.json()["missing_fields"] == ["product_ids"]

    def test_unknown_order(self, client):
        response = client.put(f"/api/orders/{ObjectId()}", json={"customer_name": "Timur"})

        assert response.status_code == 404

    def test_empty_update_returns_current_order(self, client, insert_product, insert_order):
        product = insert_product()
        order = insert_order([product["_id"]], customer_name="Sevara")

        response = client.put(f"/api/orders/{order['_id']}", json={})

        assert response.status_code == 200
        assert response.json()["order"]["customer_name"] == "Sevara"


class TestDeleteOrder:
    """Test DELETE /api/orders/{id}"""

    def test_returns_deleted_order(self, client, db, insert_product, insert_order):
        product = insert_product()
        order = insert_order([product["_id"]])

        response = client.delete(f"/api/orders/{order['_id']}")

        assert response.status_code == 200
        assert response.json()["message"] == "Order deleted successfully"
        assert response.json()["order"]["_id"] == str(order["_id"])
        assert db[ORDERS_COLLECTION].count_documents({}) == 0

    def test_unknown_order_leaves_store_alone(self, client, db, insert_product, insert_order):
        product = insert_product()
        insert_order([product["_id"]])

        response = client.delete(f"/api/orders/{ObjectId()}")

        assert response.status_code == 404
        assert response.json() == {"message": "Order not found"}
        assert db[ORDERS_COLLECTION].count_documents({}) == 1


class TestOrderReport:
    """Test GET /api/orders/report"""

    def test_report(self, client, insert_product, insert_order):
        product = insert_product()
        insert_order([product["_id"]], total_price=100, payment_method="Payme")
        insert_order([product["_id"]], total_price=50, payment_method="Payme")
        insert_order([product["_id"]], total_price=30, payment_method="Click")

        response = client.get("/api/orders/report")

        assert response.status_code == 200
        assert response.json() == {
            "data": [
                {"paymentMethod": "Payme", "totalRevenue": 150, "totalOrders": 2, "averageOrderValue": 75},
                {"paymentMethod": "Click", "totalRevenue": 30, "totalOrders": 1, "averageOrderValue": 30},
            ],
            "timeRange": {"from": "all time", "to": "present"},
        }

    def test_invalid_start_date(self, client):
        response = client.get("/api/orders/report", params={"startDate": "31/31/2024x"})

        assert response.status_code == 400
        assert response.json() == {"message": "Invalid startDate format"}

    def test_invalid_end_date(self, client):
        response = client.get("/api/orders/report", params={"startDate": "2024-01-01", "endDate": "nope"})

        assert response.status_code == 400
        assert response.json() == {"message": "Invalid endDate format"}
