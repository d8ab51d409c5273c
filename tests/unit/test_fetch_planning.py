"""Tests for upstream page fetches and the PlanIt search client."""

from datetime import date
from unittest.mock import AsyncMock

import httpx
import pytest

from landhunt.core.errors import RateLimitedError, UpstreamFetchError
from landhunt.retrieval.fetch import ERROR_BODY_LIMIT, fetch_page, raise_for_upstream
from landhunt.retrieval.planning import BBox, bbox_from_polygon, search_applications


def _response(status_code: int, text: str = "", json_data=None) -> httpx.Response:
    request = httpx.Request("GET", "https://upstream.test/")
    if json_data is not None:
        return httpx.Response(status_code, json=json_data, request=request)
    return httpx.Response(status_code, text=text, request=request)


class TestRaiseForUpstream:
    def test_success_passes(self):
        raise_for_upstream(_response(200, "ok"), "test")

    def test_429_is_rate_limited(self):
        with pytest.raises(RateLimitedError) as exc:
            raise_for_upstream(_response(429, "slow down"), "PlanIt")
        assert exc.value.status == 429
        assert exc.value.body == "slow down"
        assert exc.value.status_code == 429

    def test_other_errors_carry_status_and_body(self):
        with pytest.raises(UpstreamFetchError) as exc:
            raise_for_upstream(_response(503, "maintenance"), "PlanIt")
        assert not isinstance(exc.value, RateLimitedError)
        assert exc.value.to_dict() == {
            "detail": "PlanIt returned HTTP 503",
            "error_type": "upstream_fetch_error",
            "status": 503,
            "body": "maintenance",
        }

    def test_body_truncated(self):
        with pytest.raises(UpstreamFetchError) as exc:
            raise_for_upstream(_response(500, "x" * 5000), "PlanIt")
        assert len(exc.value.body) == ERROR_BODY_LIMIT


class TestFetchPage:
    @pytest.mark.asyncio
    async def test_returns_body(self):
        client = AsyncMock()
        client.get.return_value = _response(200, "<p>Approved</p>")
        assert await fetch_page(client, "https://council.test/app/1") == "<p>Approved</p>"
        assert client.get.call_args.kwargs["follow_redirects"] is True

    @pytest.mark.asyncio
    async def test_transport_error(self):
        client = AsyncMock()
        client.get.side_effect = httpx.ConnectTimeout("timed out")
        with pytest.raises(UpstreamFetchError, match="Could not fetch"):
            await fetch_page(client, "https://council.test/app/1")

    @pytest.mark.asyncio
    async def test_malformed_url(self):
        transport = httpx.MockTransport(lambda request: httpx.Response(200, text="ok"))
        async with httpx.AsyncClient(transport=transport) as client:
            with pytest.raises(UpstreamFetchError, match="Could not fetch"):
                await fetch_page(client, "http://exa\x00mple.org/")

    @pytest.mark.asyncio
    async def test_404(self):
        client = AsyncMock()
        client.get.return_value = _response(404, "gone")
        with pytest.raises(UpstreamFetchError) as exc:
            await fetch_page(client, "https://council.test/app/1")
        assert exc.value.status == 404


class TestBBoxFromPolygon:
    def test_bounds_of_ring(self):
        ring = [[-1.5, 52.0], [-1.2, 52.0], [-1.2, 52.3], [-1.5, 52.3], [-1.5, 52.0]]
        assert bbox_from_polygon([ring]) == BBox(-1.5, 52.0, -1.2, 52.3)

    def test_empty_raises(self):
        with pytest.raises(ValueError):
            bbox_from_polygon([[]])

    def test_param_format(self):
        assert BBox(-1.5, 52.0, -1.2, 52.3).to_param() == "-1.5,52.0,-1.2,52.3"


class TestSearchApplications:
    @pytest.mark.asyncio
    async def test_query_params(self):
        client = AsyncMock()
        client.get.return_value = _response(
            200, json_data={"type": "FeatureCollection", "features": []},
        )
        result = await search_applications(
            client, "https://planit.test/", BBox(-1.5, 52.0, -1.2, 52.3), today=date(2026, 10, 19),
        )
        assert result["type"] == "FeatureCollection"
        assert client.get.call_args.args[0] == "https://planit.test/api/applics/geojson"
        params = client.get.call_args.kwargs["params"]
        assert params == {
            "bbox": "-1.5,52.0,-1.2,52.3",
            "start_date": "2000-02-01",
            "end_date": "2026-10-19",
            "pg_sz": "200",
            "compress": "on",
        }

    @pytest.mark.asyncio
    async def test_rate_limited_passthrough(self):
        client = AsyncMock()
        client.get.return_value = _response(429, "Too many requests")
        with pytest.raises(RateLimitedError) as exc:
            await search_applications(client, "https://planit.test", BBox(0, 0, 1, 1))
        assert exc.value.body == "Too many requests"

    @pytest.mark.asyncio
    async def test_unreachable(self):
        client = AsyncMock()
        client.get.side_effect = httpx.ConnectError("refused")
        with pytest.raises(UpstreamFetchError):
            await search_applications(client, "https://planit.test", BBox(0, 0, 1, 1))

    @pytest.mark.asyncio
    async def test_non_json_body(self):
        transport = httpx.MockTransport(
            lambda request: httpx.Response(200, text="<html>maintenance</html>"),
        )
        async with httpx.AsyncClient(transport=transport) as client:
            with pytest.raises(UpstreamFetchError) as exc:
                await search_applications(client, "https://planit.test", BBox(0, 0, 1, 1))
        assert exc.value.status == 200
        assert exc.value.body == "<html>maintenance</html>"
        assert exc.value.status_code == 502

    @pytest.mark.asyncio
    async def test_top_level_list_rejected(self):
        client = AsyncMock()
        client.get.return_value = _response(200, json_data=[{"id": 1}])
        with pytest.raises(UpstreamFetchError, match="non-object"):
            await search_applications(client, "https://planit.test", BBox(0, 0, 1, 1))
