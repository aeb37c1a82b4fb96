"""
Integration tests for the directory service against the mock upstream.
"""

import asyncio

import httpx
import pytest

from mocks.directory.server import MockDirectoryServer
from service_directory.app.main import API_PREFIX, SERVICE_NAME, SERVICE_PORT, DirectoryService
from shared.config import get_config


class TestDirectoryFlow:
    """End-to-end flow: API -> cache -> gateway -> transport -> mock upstream."""

    @pytest.fixture
    def upstream(self):
        """Mock upstream with its default seed."""
        return MockDirectoryServer()

    @pytest.fixture
    def service(self, upstream):
        """Directory service wired to the mock upstream."""
        config = get_config(
            SERVICE_NAME,
            SERVICE_PORT,
            directory_base_url="http://directory.test/api/v1",
            rate_limit_for_period=1000,
        )
        return DirectoryService(config, transport=httpx.ASGITransport(app=upstream.app))

    def _client(self, service) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.ASGITransport(app=service.app), base_url="http://api.test")

    @pytest.mark.asyncio
    async def test_concurrent_reads_single_upstream_fetch(self, service, upstream):
        """Test concurrent requests against a cold cache fetch once."""
        async with self._client(service) as client:
            responses = await asyncio.gather(*[
                client.get(API_PREFIX + path)
                for path in ["", "/highestSalary", "/topTenHighestEarningEmployeeNames", "/search/e"] * 5
            ])

        assert all(response.status_code == 200 for response in responses)
        assert upstream.request_counts["list"] == 1
        await service.snapshot_cache.close()
        await service.directory_client.aclose()

    @pytest.mark.asyncio
    async def test_create_then_delete_round_trip(self, service, upstream):
        """Test writes are visible on the next read."""
        async with self._client(service) as client:
            before = (await client.get(API_PREFIX)).json()

            created = await client.post(
                API_PREFIX,
                json={"name": "Dana Scully", "salary": 999999, "age": 35, "title": "Special Agent"},
            )
            assert created.status_code == 200
            new_id = created.json()["id"]

            assert (await client.get(API_PREFIX + "/highestSalary")).json() == 999999
            top = (await client.get(API_PREFIX + "/topTenHighestEarningEmployeeNames")).json()
            assert top[0] == "Dana Scully"

            deleted = await client.delete(f"{API_PREFIX}/{new_id}")
            assert deleted.json() == "Dana Scully"

            after = (await client.get(API_PREFIX)).json()

        assert [e["id"] for e in after] == [e["id"] for e in before]
        assert upstream.request_counts["list"] == 3
        await service.snapshot_cache.close()
        await service.directory_client.aclose()

    @pytest.mark.asyncio
    async def test_failed_snapshot_cached_until_invalidated(self, service, upstream):
        """Test an upstream failure is served from cache until invalidation."""
        upstream.fail_next(503)

        async with self._client(service) as client:
            assert (await client.get(API_PREFIX)).status_code == 502
            assert (await client.get(API_PREFIX)).status_code == 502
            assert upstream.request_counts["list"] == 1

            await client.post(API_PREFIX + "/cache/invalidate")

            assert (await client.get(API_PREFIX)).status_code == 200

        assert upstream.request_counts["list"] == 2
        await service.snapshot_cache.close()
        await service.directory_client.aclose()
