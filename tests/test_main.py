from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient

from conftest import FakeDirect
from functions import function_declarations, register_all
from main import build_context, create_app
from product_search import ResolutionChain
from registry import FunctionRegistry


@pytest.fixture
def client(catalog, telemetry, live_absent):
    registry = FunctionRegistry(telemetry)
    chain = ResolutionChain(catalog, FakeDirect(html=None), live_absent, telemetry)
    register_all(registry, catalog, chain)
    with TestClient(create_app(registry)) as test_client:
        yield test_client


class TestInvokeEndpoint:
    def test_check_inventory(self, client):
        response = client.post("/api/functions/invoke", json={
            "name": "checkInventory",
            "parameters": {"product_sku": "SKU123"},
            "context": {"conversationId": "call-42"},
        })

        body = response.json()
        assert response.status_code == 200
        assert body["success"] is True
        assert body["data"]["available"] is False
        assert body["data"]["alternatives"]

    def test_unknown_function_is_404(self, client):
        response = client.post("/api/functions/invoke", json={"name": "orderPizza", "parameters": {}})

        assert response.status_code == 404
        assert response.json()["error"]["type"] == "UnknownOperationError"
        assert response.json()["message"]

    def test_greek_caller_gets_greek_answer(self, client):
        response = client.post("/api/functions/invoke", json={
            "name": "getStoreInfo",
            "parameters": {"info_type": "location"},
            "context": {"customerProfile": {"preferredLanguage": "el"}},
        })

        assert "Λεωφόρο Μακαρίου" in response.json()["message"]

    def test_string_parameters_and_odd_profile_values(self, client):
        response = client.post("/api/functions/invoke", json={
            "name": "checkInventory",
            "parameters": '{"product_sku": "SKU123"}',
            "context": {"customerProfile": {"totalOrders": "lots", "preferredLanguage": "en"}},
        })

        assert response.status_code == 200
        assert response.json()["data"]["available"] is False


class TestVoicePlatformWebhook:
    def test_function_call_message(self, client, sink):
        response = client.post("/api/vapi", json={
            "message": {
                "type": "function-call",
                "functionCall": {"name": "searchLiveProducts", "parameters": {"product_query": "RTX 4090"}},
                "call": {"id": "call-7"},
            }
        })

        body = response.json()
        assert response.status_code == 200
        assert "RTX 4090" in body["result"]
        assert body["data"]["dataSource"] == "catalog"
        invoked = sink.of_type("function_invoked")
        assert invoked[-1].conversation_id == "call-7"

    def test_json_string_parameters(self, client):
        response = client.post("/api/vapi", json={
            "message": {
                "type": "function-call",
                "functionCall": {"name": "checkInventory", "parameters": '{"product_sku": "SKU123"}'},
                "call": {"id": "call-8"},
            }
        })

        body = response.json()
        assert response.status_code == 200
        assert body["success"] is True
        assert body["data"]["available"] is False

    @pytest.mark.parametrize("parameters", [["SKU123"], "{product_sku: SKU123", "null"])
    def test_unusable_parameters_ask_the_caller_again(self, client, parameters):
        response = client.post("/api/vapi", json={
            "message": {
                "type": "function-call",
                "functionCall": {"name": "checkInventory", "parameters": parameters},
            }
        })

        body = response.json()
        assert response.status_code == 200
        assert body["requiresInput"] is True
        assert body["result"]

    def test_customer_with_non_numeric_order_count(self, client):
        response = client.post("/api/vapi", json={
            "message": {
                "type": "function-call",
                "functionCall": {"name": "getStoreInfo", "parameters": {"info_type": "hours"}},
                "customer": {"number": "+35799000000", "totalOrders": "a few"},
            }
        })

        assert response.status_code == 200
        assert response.json()["success"] is True

    def test_other_messages_are_acknowledged(self, client):
        response = client.post("/api/vapi", json={"message": {"type": "status-update", "status": "ended"}})

        assert response.json() == {"received": True}


class TestListing:
    def test_functions_and_registry_stats(self, client):
        body = client.get("/api/functions").json()

        assert [declaration["name"] for declaration in body["functions"]] == body["registry"]["operations"]
        assert body["registry"]["cacheSize"] == 0

    def test_root(self, client):
        assert client.get("/").status_code == 200


def test_declarations_cover_every_operation():
    assert {declaration["name"] for declaration in function_declarations} == {
        "checkInventory", "getProductPrice", "searchLiveProducts", "getLiveProductDetails", "getStoreInfo",
    }


def test_build_context_accepts_snake_case():
    context = build_context({"conversation_id": "c1", "language": "el"})

    assert context.conversation_id == "c1"
    assert context.language == "el"


def test_registry_is_built_at_startup_when_not_supplied(catalog, live_absent):
    registry = FunctionRegistry()
    register_all(registry, catalog, ResolutionChain(catalog, FakeDirect(html=None), live_absent))

    with patch("main.build_registry", return_value=registry) as build:
        with TestClient(create_app()) as test_client:
            response = test_client.post("/api/functions/invoke",
                                        json={"name": "getStoreInfo", "parameters": {"info_type": "hours"}})

    build.assert_called_once_with()
    assert response.json()["success"] is True
