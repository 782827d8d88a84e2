"""Tests for the catalog backend client."""

from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from product_editor.core.auth_events import AuthChangeNotifier
from product_editor.models.draft import StagedImage
from product_editor.models.options import Option
from product_editor.schemas.payloads import (
    MarketplaceListingPatch,
    MarketplaceListingPayload,
    VariantSkuPatch,
)
from product_editor.services import backend_client
from product_editor.services.backend_client import (
    CatalogAPIError,
    CatalogClient,
    MissingIdentifierError,
    get_catalog_client,
)


def _response(status_code: int = 200, body=None, text: str = "") -> MagicMock:
    response = MagicMock()
    response.status_code = status_code
    response.content = b"" if body is None else b"{}"
    response.json = MagicMock(return_value=body)
    response.text = text
    response.raise_for_status = MagicMock()
    return response


def _error_response(status_code: int, body=None, text: str = "") -> MagicMock:
    response = _response(status_code, body, text)
    response.raise_for_status = MagicMock(
        side_effect=httpx.HTTPStatusError(
            "Error",
            request=MagicMock(),
            response=response,
        )
    )
    return response


class TestCatalogClient:
    """Tests for CatalogClient."""

    @pytest.fixture
    def client(self) -> CatalogClient:
        return CatalogClient(
            base_url="http://test-backend:8080/api",
            timeout=5.0,
            api_token="tok",
            tenant_id="tenant-1",
        )

    def test_headers(self, client: CatalogClient):
        headers = client._headers()

        assert headers["Authorization"] == "Bearer tok"
        assert headers["X-Tenant-ID"] == "tenant-1"
        assert "Content-Type" not in headers

    def test_headers_without_credentials(self):
        client = CatalogClient(base_url="http://x", api_token="", tenant_id="")
        assert client._headers() == {"Accept": "application/json"}

    @pytest.mark.asyncio
    async def test_get_product_unwraps_data(self, client: CatalogClient):
        body = {
            "data": {
                "id": 12,
                "kind": "variant",
                "name": "Boot",
                "ProductVariant": [{"id": 5, "sku": "BOOT-9", "size": {"code": "9"}}],
            }
        }

        with patch.object(client, '_get_client') as mock_get_client:
            mock_http_client = AsyncMock()
            mock_http_client.get = AsyncMock(return_value=_response(body=body))
            mock_get_client.return_value = mock_http_client

            product = await client.get_product_by_id("12")

            assert mock_http_client.get.call_args[0][0] == "/products/12"
            assert product.id == "12"
            assert product.variants[0].id == "5"
            assert product.variants[0].size.code == "9"

    @pytest.mark.asyncio
    async def test_create_product_sends_wire_payload(self, client: CatalogClient):
        body = {"id": "p-1", "variants": [{"id": "v-1", "sku": "A-S"}]}

        with patch.object(client, '_get_client') as mock_get_client:
            mock_http_client = AsyncMock()
            mock_http_client.post = AsyncMock(return_value=_response(body=body))
            mock_get_client.return_value = mock_http_client

            created = await client.create_product({"name": "A", "sku": "A"})

            call_args = mock_http_client.post.call_args
            assert call_args[0][0] == "/products"
            assert call_args[1]["json"] == {"name": "A", "sku": "A"}
            assert created.variant_ids_by_sku() == {"A-S": "v-1"}

    @pytest.mark.asyncio
    async def test_update_variant_patch(self, client: CatalogClient):
        with patch.object(client, '_get_client') as mock_get_client:
            mock_http_client = AsyncMock()
            mock_http_client.patch = AsyncMock(return_value=_response(204))
            mock_get_client.return_value = mock_http_client

            result = await client.update_product_variant("p-1", "v-1", VariantSkuPatch(sku="NEW"))

            call_args = mock_http_client.patch.call_args
            assert call_args[0][0] == "/products/p-1/variants/v-1"
            assert call_args[1]["json"] == {"sku": "NEW"}
            assert result is None

    @pytest.mark.asyncio
    async def test_http_error_raises_with_backend_message(self, client: CatalogClient):
        with patch.object(client, '_get_client') as mock_get_client:
            mock_http_client = AsyncMock()
            mock_http_client.post = AsyncMock(
                return_value=_error_response(409, body={"message": "SKU already exists"})
            )
            mock_get_client.return_value = mock_http_client

            with pytest.raises(CatalogAPIError) as exc_info:
                await client.create_product({"name": "A"})

            assert exc_info.value.message == "SKU already exists"
            assert exc_info.value.status_code == 409
            assert exc_info.value.operation == "create_product"

    @pytest.mark.asyncio
    async def test_http_error_falls_back_to_text(self, client: CatalogClient):
        response = _error_response(500, text="Internal Server Error")
        response.json = MagicMock(side_effect=ValueError("no json"))

        with patch.object(client, '_get_client') as mock_get_client:
            mock_http_client = AsyncMock()
            mock_http_client.get = AsyncMock(return_value=response)
            mock_get_client.return_value = mock_http_client

            with pytest.raises(CatalogAPIError, match="Internal Server Error"):
                await client.list_suppliers()

    @pytest.mark.asyncio
    async def test_unauthorized_publishes_auth_event(self):
        events = AuthChangeNotifier()
        listener = MagicMock(return_value=None)
        events.subscribe(listener)
        client = CatalogClient(base_url="http://x", auth_events=events)

        with patch.object(client, '_get_client') as mock_get_client:
            mock_http_client = AsyncMock()
            mock_http_client.get = AsyncMock(return_value=_error_response(401, text="expired"))
            mock_get_client.return_value = mock_http_client

            with pytest.raises(CatalogAPIError):
                await client.get_product_meta_enums()

        listener.assert_called_once_with("unauthorized")

    @pytest.mark.asyncio
    async def test_connection_error(self, client: CatalogClient):
        with patch.object(client, '_get_client') as mock_get_client:
            mock_http_client = AsyncMock()
            mock_http_client.get = AsyncMock(side_effect=httpx.ConnectError("Connection refused"))
            mock_get_client.return_value = mock_http_client

            with pytest.raises(CatalogAPIError) as exc_info:
                await client.list_suppliers()

            assert exc_info.value.status_code is None

    @pytest.mark.asyncio
    async def test_missing_identifier(self, client: CatalogClient):
        with pytest.raises(MissingIdentifierError):
            await client.get_product_by_id("  ")

    @pytest.mark.asyncio
    async def test_upload_variant_images(self, client: CatalogClient):
        image = StagedImage("a.png", b"data", "image/png")

        with patch.object(client, '_get_client') as mock_get_client:
            mock_http_client = AsyncMock()
            mock_http_client.post = AsyncMock(return_value=_response(body={"ok": True}))
            mock_get_client.return_value = mock_http_client

            await client.upload_product_images("p-1", [image], variant_id="v-2")

            call_args = mock_http_client.post.call_args
            assert call_args[0][0] == "/products/p-1/images"
            assert call_args[1]["files"] == [("images", ("a.png", b"data", "image/png"))]
            assert call_args[1]["params"] == {"variantId": "v-2"}
            assert call_args[1]["data"] == {"variantId": "v-2"}

    @pytest.mark.asyncio
    async def test_link_supplier_payload(self, client: CatalogClient):
        with patch.object(client, '_get_client') as mock_get_client:
            mock_http_client = AsyncMock()
            mock_http_client.post = AsyncMock(return_value=_response(204))
            mock_get_client.return_value = mock_http_client

            await client.link_supplier_products("s-1", ["p-1"], last_purchase_price=4.5, currency="USD")
            await client.link_supplier_products("s-1", ["p-1"])

            first, second = mock_http_client.post.call_args_list
            assert first[0][0] == "/suppliers/s-1/products"
            assert first[1]["json"] == {"productIds": ["p-1"], "lastPurchasePrice": 4.5, "currency": "USD"}
            assert second[1]["json"] == {"productIds": ["p-1"]}

    @pytest.mark.asyncio
    async def test_add_listing_scope(self, client: CatalogClient):
        payload = MarketplaceListingPayload(
            productName="Boot", marketplace="Etsy", units=2, variantId="v-1"
        )

        with patch.object(client, '_get_client') as mock_get_client:
            mock_http_client = AsyncMock()
            mock_http_client.post = AsyncMock(
                return_value=_response(body={"id": 3, "marketplace": "Etsy", "productVariantId": "v-1"})
            )
            mock_get_client.return_value = mock_http_client

            listing = await client.add_product_marketplace_listing("p-1", payload)

            call_args = mock_http_client.post.call_args
            assert call_args[0][0] == "/products/p-1/marketplaces/listings/variant"
            assert call_args[1]["json"]["units"] == 2
            assert listing.id == "3"
            assert listing.variantId == "v-1"

    @pytest.mark.asyncio
    async def test_list_listings_flattens(self, client: CatalogClient):
        body = {
            "productListings": [{"id": 1, "marketplace": "Etsy"}],
            "variantListings": [{"id": 2, "marketplace": "Etsy", "externalSku": "E-1"}],
        }

        with patch.object(client, '_get_client') as mock_get_client:
            mock_http_client = AsyncMock()
            mock_http_client.get = AsyncMock(return_value=_response(body=body))
            mock_get_client.return_value = mock_http_client

            listings = await client.list_product_marketplace_listings("p-1")

            assert [row.id for row in listings] == ["1", "2"]
            assert listings[1].sku == "E-1"

    @pytest.mark.asyncio
    async def test_search_channels_unwraps_paging(self, client: CatalogClient):
        body = {"items": [{"id": 1, "name": "Amazon"}], "total": 1}

        with patch.object(client, '_get_client') as mock_get_client:
            mock_http_client = AsyncMock()
            mock_http_client.get = AsyncMock(return_value=_response(body=body))
            mock_get_client.return_value = mock_http_client

            channels = await client.search_marketplace_channels("ama")

            assert mock_http_client.get.call_args[1]["params"] == {"page": 1, "perPage": 20, "q": "ama"}
            assert channels[0].marketplace == "Amazon"

    @pytest.mark.asyncio
    async def test_update_listing_patch(self, client: CatalogClient):
        with patch.object(client, '_get_client') as mock_get_client:
            mock_http_client = AsyncMock()
            mock_http_client.patch = AsyncMock(return_value=_response(204))
            mock_get_client.return_value = mock_http_client

            await client.update_product_marketplace_listing(
                "p-1", "l-4", MarketplaceListingPatch(units=5)
            )

            call_args = mock_http_client.patch.call_args
            assert call_args[0][0] == "/products/p-1/marketplaces/listings/l-4"
            assert call_args[1]["json"] == {"units": 5}

    @pytest.mark.asyncio
    async def test_bulk_listings_wrap_rows(self, client: CatalogClient):
        row = MarketplaceListingPayload(
            productName="Boot", marketplace="Etsy", units=1, variantId="v-1"
        )

        with patch.object(client, '_get_client') as mock_get_client:
            mock_http_client = AsyncMock()
            mock_http_client.post = AsyncMock(return_value=_response(body={"data": []}))
            mock_get_client.return_value = mock_http_client

            await client.bulk_add_marketplace_listings("p-1", [row])

            call_args = mock_http_client.post.call_args
            assert call_args[0][0] == "/products/p-1/marketplaces/listings/bulk"
            assert call_args[1]["json"] == {
                "rows": [
                    {"productName": "Boot", "marketplace": "Etsy", "units": 1, "variantId": "v-1"},
                ],
            }

    @pytest.mark.asyncio
    async def test_listing_product_names_shapes(self, client: CatalogClient):
        with patch.object(client, '_get_client') as mock_get_client:
            mock_http_client = AsyncMock()
            mock_http_client.get = AsyncMock(side_effect=[
                _response(body={"data": ["Boot", ""]}),
                _response(body={"data": {"providers": [{"provider": "Acme"}, {"provider": None}]}}),
            ])
            mock_get_client.return_value = mock_http_client

            assert await client.search_listing_product_names(" bo ") == ["Boot"]
            assert await client.search_listing_product_names() == ["Acme"]

            first, second = mock_http_client.get.call_args_list
            assert first[0][0] == "/products/marketplaces/product-names"
            assert first[1]["params"] == {"q": "bo"}
            assert second[1]["params"] is None

    @pytest.mark.asyncio
    async def test_list_product_images(self, client: CatalogClient):
        with patch.object(client, '_get_client') as mock_get_client:
            mock_http_client = AsyncMock()
            mock_http_client.get = AsyncMock(
                return_value=_response(body=[{"id": 9, "url": "https://cdn/a.jpg"}])
            )
            mock_get_client.return_value = mock_http_client

            images = await client.list_product_images("p-1")

            assert mock_http_client.get.call_args[0][0] == "/products/p-1/images"
            assert [(i.id, i.url) for i in images] == [("9", "https://cdn/a.jpg")]

    @pytest.mark.asyncio
    async def test_list_countries_uses_separate_client(self, client: CatalogClient):
        response = _response(body=[{"cca2": "FR", "name": {"common": "France"}}])
        inner = AsyncMock()
        inner.get = AsyncMock(return_value=response)
        factory = MagicMock()
        factory.return_value.__aenter__ = AsyncMock(return_value=inner)
        factory.return_value.__aexit__ = AsyncMock(return_value=False)

        with patch.object(backend_client.httpx, "AsyncClient", factory):
            options = await client.list_countries()

        assert options[0] == Option("FR", "France (FR)")
        assert "headers" not in factory.call_args[1]

    @pytest.mark.asyncio
    async def test_close(self, client: CatalogClient):
        http_client = await client._get_client()
        assert isinstance(http_client, httpx.AsyncClient)

        await client.close()

        assert client._client is None


class TestGetCatalogClient:
    """Tests for the singleton getter."""

    def test_returns_singleton(self):
        backend_client._catalog_client = None
        first = get_catalog_client()
        second = get_catalog_client()

        assert first is second
        backend_client._catalog_client = None
