"""Test the Shopify Admin GraphQL order gateway."""

from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from delivery_reconciler.clients.base import OrderGateway
from delivery_reconciler.clients.shopify import (
    DELIVERED_EVENT_MESSAGE,
    ShopifyOrderGateway,
    to_order_gid,
)
from delivery_reconciler.config import ShopifyConfig
from delivery_reconciler.errors import ConfigurationError, UpstreamError


def _response(status_code=200, payload=None, text=""):
    mock_response = MagicMock()
    mock_response.status_code = status_code
    mock_response.json.return_value = payload
    mock_response.text = text
    return mock_response


ORDER_DATA = {
    "data": {
        "order": {
            "id": "gid://shopify/Order/5512345678",
            "name": "#1001",
            "displayFulfillmentStatus": "FULFILLED",
            "fulfillments": [
                {
                    "id": "gid://shopify/Fulfillment/1",
                    "displayStatus": "IN_TRANSIT",
                    "trackingInfo": [
                        {"number": "794843185271", "company": "FedEx", "url": "https://fedex.com/t/1"},
                        {"number": None, "company": "FedEx", "url": None},
                    ],
                },
                {
                    "id": "gid://shopify/Fulfillment/2",
                    "displayStatus": "DELIVERED",
                    "trackingInfo": [],
                },
            ],
        }
    }
}


class TestToOrderGid:
    """Test order id normalization."""

    def test_numeric_id_is_prefixed(self):
        assert to_order_gid("5512345678") == "gid://shopify/Order/5512345678"

    def test_gid_passes_through(self):
        assert to_order_gid("gid://shopify/Order/42") == "gid://shopify/Order/42"


class TestShopifyOrderGatewayInit:
    """Test gateway construction."""

    def test_extends_order_gateway(self):
        assert issubclass(ShopifyOrderGateway, OrderGateway)

    def test_missing_credentials_raise_configuration_error(self):
        with pytest.raises(ConfigurationError) as exc_info:
            ShopifyOrderGateway(ShopifyConfig())
        assert exc_info.value.details["missing"] == [
            "SHOPIFY_STORE_DOMAIN",
            "SHOPIFY_ACCESS_TOKEN",
        ]


class TestFetchOrder:
    """Test order reads and error classification."""

    @pytest.mark.asyncio
    async def test_fetch_order_normalizes_fulfillments(self, shopify_config):
        gateway = ShopifyOrderGateway(shopify_config)

        with patch.object(httpx.AsyncClient, "post", new_callable=AsyncMock) as mock_post:
            mock_post.return_value = _response(payload=ORDER_DATA)
            order = await gateway.fetch_order("5512345678")

        assert order.id == "gid://shopify/Order/5512345678"
        assert order.name == "#1001"
        assert len(order.fulfillments) == 2
        first, second = order.fulfillments
        assert first.tracking_numbers == ["794843185271"]
        assert first.tracking[0].company == "FedEx"
        assert second.is_delivered is True
        assert second.tracking == []

        args, kwargs = mock_post.call_args
        assert args[0] == "https://test-store.myshopify.com/admin/api/2024-10/graphql.json"
        assert kwargs["headers"]["X-Shopify-Access-Token"] == "shpat_test_token_12345"
        assert kwargs["json"]["variables"] == {"id": "gid://shopify/Order/5512345678"}

    @pytest.mark.asyncio
    async def test_null_order_is_not_found(self, shopify_config):
        gateway = ShopifyOrderGateway(shopify_config)

        with patch.object(httpx.AsyncClient, "post", new_callable=AsyncMock) as mock_post:
            mock_post.return_value = _response(payload={"data": {"order": None}})
            with pytest.raises(UpstreamError) as exc_info:
                await gateway.fetch_order("999")

        assert exc_info.value.code == "E-6005"
        assert exc_info.value.not_found is True

    @pytest.mark.asyncio
    async def test_http_error(self, shopify_config):
        gateway = ShopifyOrderGateway(shopify_config)

        with patch.object(httpx.AsyncClient, "post", new_callable=AsyncMock) as mock_post:
            mock_post.return_value = _response(
                status_code=401, text='{"errors":"[API] Invalid API key or access token"}'
            )
            with pytest.raises(UpstreamError) as exc_info:
                await gateway.fetch_order("1001")

        err = exc_info.value
        assert err.code == "E-6002"
        assert err.not_found is False
        assert err.status_code == 401
        assert err.details["status"] == 401

    @pytest.mark.asyncio
    async def test_transport_error(self, shopify_config):
        gateway = ShopifyOrderGateway(shopify_config)

        with patch.object(httpx.AsyncClient, "post", new_callable=AsyncMock) as mock_post:
            mock_post.side_effect = httpx.ConnectError("connection refused")
            with pytest.raises(UpstreamError) as exc_info:
                await gateway.fetch_order("1001")

        assert exc_info.value.code == "E-6001"

    @pytest.mark.asyncio
    async def test_graphql_errors(self, shopify_config):
        gateway = ShopifyOrderGateway(shopify_config)

        with patch.object(httpx.AsyncClient, "post", new_callable=AsyncMock) as mock_post:
            mock_post.return_value = _response(
                payload={"errors": [{"message": "Throttled"}]}
            )
            with pytest.raises(UpstreamError) as exc_info:
                await gateway.fetch_order("1001")

        assert exc_info.value.code == "E-6004"
        assert "Throttled" in exc_info.value.message

    @pytest.mark.asyncio
    @pytest.mark.parametrize("payload", [[], {"data": None}, {"extensions": {}}])
    async def test_malformed_body(self, shopify_config, payload):
        gateway = ShopifyOrderGateway(shopify_config)

        with patch.object(httpx.AsyncClient, "post", new_callable=AsyncMock) as mock_post:
            mock_post.return_value = _response(payload=payload)
            with pytest.raises(UpstreamError) as exc_info:
                await gateway.fetch_order("1001")

        assert exc_info.value.code == "E-6003"

    @pytest.mark.asyncio
    async def test_order_node_missing_id(self, shopify_config):
        gateway = ShopifyOrderGateway(shopify_config)

        with patch.object(httpx.AsyncClient, "post", new_callable=AsyncMock) as mock_post:
            mock_post.return_value = _response(payload={"data": {"order": {"name": "#1"}}})
            with pytest.raises(UpstreamError) as exc_info:
                await gateway.fetch_order("1001")

        assert exc_info.value.code == "E-6003"


class TestConfirmFulfillmentDelivered:
    """Test delivery confirmation writes never raise."""

    @pytest.mark.asyncio
    async def test_success(self, shopify_config):
        gateway = ShopifyOrderGateway(shopify_config)
        payload = {
            "data": {
                "fulfillmentEventCreate": {
                    "fulfillmentEvent": {
                        "id": "gid://shopify/FulfillmentEvent/77",
                        "status": "DELIVERED",
                        "happenedAt": "2024-05-01T18:03:00Z",
                    },
                    "userErrors": [],
                }
            }
        }

        with patch.object(httpx.AsyncClient, "post", new_callable=AsyncMock) as mock_post:
            mock_post.return_value = _response(payload=payload)
            event = await gateway.confirm_fulfillment_delivered(
                "gid://shopify/Fulfillment/1", "2024-05-01T14:03:00-04:00"
            )

        assert event.ok is True
        assert event.event_id == "gid://shopify/FulfillmentEvent/77"
        assert event.event_status == "DELIVERED"
        assert event.error is None
        sent = mock_post.call_args.kwargs["json"]["variables"]["fulfillmentEvent"]
        assert sent == {
            "fulfillmentId": "gid://shopify/Fulfillment/1",
            "status": "DELIVERED",
            "message": DELIVERED_EVENT_MESSAGE,
            "happenedAt": "2024-05-01T14:03:00-04:00",
        }

    @pytest.mark.asyncio
    async def test_omits_happened_at_when_unknown(self, shopify_config):
        gateway = ShopifyOrderGateway(shopify_config)
        payload = {"data": {"fulfillmentEventCreate": {"fulfillmentEvent": {"id": "e1"}, "userErrors": []}}}

        with patch.object(httpx.AsyncClient, "post", new_callable=AsyncMock) as mock_post:
            mock_post.return_value = _response(payload=payload)
            event = await gateway.confirm_fulfillment_delivered("gid://shopify/Fulfillment/1")

        assert event.ok is True
        sent = mock_post.call_args.kwargs["json"]["variables"]["fulfillmentEvent"]
        assert "happenedAt" not in sent

    @pytest.mark.asyncio
    async def test_user_errors(self, shopify_config):
        gateway = ShopifyOrderGateway(shopify_config)
        payload = {
            "data": {
                "fulfillmentEventCreate": {
                    "fulfillmentEvent": None,
                    "userErrors": [{"field": ["fulfillmentId"], "message": "Fulfillment does not exist"}],
                }
            }
        }

        with patch.object(httpx.AsyncClient, "post", new_callable=AsyncMock) as mock_post:
            mock_post.return_value = _response(payload=payload)
            event = await gateway.confirm_fulfillment_delivered("gid://shopify/Fulfillment/9")

        assert event.ok is False
        assert event.error.code == "E-6105"
        assert event.error.reason == "user_errors"
        assert "Fulfillment does not exist" in event.error.message
        assert event.error.details["userErrors"][0]["field"] == ["fulfillmentId"]

    @pytest.mark.asyncio
    async def test_transport_error_is_reported(self, shopify_config):
        gateway = ShopifyOrderGateway(shopify_config)

        with patch.object(httpx.AsyncClient, "post", new_callable=AsyncMock) as mock_post:
            mock_post.side_effect = httpx.ConnectError("connection reset")
            event = await gateway.confirm_fulfillment_delivered("gid://shopify/Fulfillment/1")

        assert event.ok is False
        assert event.error.code == "E-6101"
        assert event.error.reason == "transport"

    @pytest.mark.asyncio
    async def test_http_error_is_reported(self, shopify_config):
        gateway = ShopifyOrderGateway(shopify_config)

        with patch.object(httpx.AsyncClient, "post", new_callable=AsyncMock) as mock_post:
            mock_post.return_value = _response(status_code=502, text="Bad Gateway")
            event = await gateway.confirm_fulfillment_delivered("gid://shopify/Fulfillment/1")

        assert event.ok is False
        assert event.error.code == "E-6102"
        assert event.error.details["status"] == 502

    @pytest.mark.asyncio
    async def test_missing_payload_is_malformed(self, shopify_config):
        gateway = ShopifyOrderGateway(shopify_config)

        with patch.object(httpx.AsyncClient, "post", new_callable=AsyncMock) as mock_post:
            mock_post.return_value = _response(payload={"data": {}})
            event = await gateway.confirm_fulfillment_delivered("gid://shopify/Fulfillment/1")

        assert event.ok is False
        assert event.error.code == "E-6103"
        assert event.error.reason == "malformed_body"

    @pytest.mark.asyncio
    async def test_graphql_errors_are_reported(self, shopify_config):
        gateway = ShopifyOrderGateway(shopify_config)

        with patch.object(httpx.AsyncClient, "post", new_callable=AsyncMock) as mock_post:
            mock_post.return_value = _response(
                payload={"errors": [{"message": "Access denied for fulfillmentEventCreate field."}]}
            )
            event = await gateway.confirm_fulfillment_delivered("gid://shopify/Fulfillment/1")

        assert event.ok is False
        assert event.error.code == "E-6104"
        assert event.error.reason == "graphql_errors"
