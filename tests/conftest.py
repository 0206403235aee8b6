"""
Shared fixtures for Redis Enterprise integration tests.

Provides a recording mock transport and one JSON fixture per management
API resource. The default cluster has three databases:
- uid 1 "cache": plain database
- uid 2 "flash": Bigstore (tiered storage)
- uid 3 "geo": Active-Active (CRDT)
"""

import asyncio
import os
from datetime import datetime, timezone

import httpx
import pytest
from httpx import Request, Response


class MockTransport(httpx.AsyncBaseTransport):
    """Mock transport serving canned responses per URL path."""

    def __init__(self, responses: dict[str, dict]):
        """
        Initialize with mapping of paths to response data.

        Args:
            responses: Dict mapping URL paths to response data.
                       Each value may have 'status_code', 'json', 'content',
                       'headers', 'delay' or 'error' keys. 'delay' holds the
                       answer for that many seconds; 'error' is an
                       exception raised instead of answering.
        """
        self._responses = responses
        self.requests: list[Request] = []

    @property
    def paths(self) -> list[str]:
        return [r.url.path for r in self.requests]

    async def handle_async_request(self, request: Request) -> Response:
        """Handle an async request by returning mocked response."""
        self.requests.append(request)
        path = request.url.path
        if path not in self._responses:
            return Response(status_code=404, request=request)

        resp_data = self._responses[path]
        if "delay" in resp_data:
            await asyncio.sleep(resp_data["delay"])
        if "error" in resp_data:
            raise resp_data["error"]
        if "content" in resp_data:
            return Response(
                status_code=resp_data.get("status_code", 200),
                content=resp_data["content"],
                headers=resp_data.get("headers"),
                request=request,
            )
        return Response(
            status_code=resp_data.get("status_code", 200),
            json=resp_data.get("json", {}),
            headers=resp_data.get("headers"),
            request=request,
        )


def stats_record(used_memory: float, total_req: float, **extra: float) -> dict:
    """Database stats record with every required gauge set."""
    stats = {
        "avg_latency": 0.0002,
        "avg_read_latency": 0.0001,
        "avg_write_latency": 0.0003,
        "conns": 12,
        "egress_bytes": 2048,
        "evicted_objects": 0,
        "expired_objects": 4,
        "ingress_bytes": 1024,
        "other_req": 3,
        "read_hits": 90,
        "read_misses": 10,
        "read_req": 100,
        "shard_cpu_system": 0.5,
        "shard_cpu_user": 1.5,
        "total_req": total_req,
        "used_memory": used_memory,
        "write_hits": 40,
        "write_misses": 2,
        "write_req": 42,
        "stime": "2026-10-19T11:59:00Z",
        "etime": "2026-10-19T12:00:00Z",
    }
    stats.update(extra)
    return stats


BIGSTORE_STATS = {
    "bigstore_objs_ram": 100,
    "bigstore_objs_flash": 900,
    "bigstore_io_reads": 11,
    "bigstore_io_writes": 12,
    "bigstore_throughput": 13,
    "big_write_ram": 14,
    "big_write_flash": 15,
    "big_del_ram": 16,
    "big_del_flash": 17,
}


@pytest.fixture
def now():
    """Fixed collection time."""
    return datetime(2026, 10, 19, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def cluster_response():
    """Sample response for GET /v1/cluster."""
    return {"name": "cluster.local", "rack_aware": False, "email_alerts": False}


@pytest.fixture
def license_response():
    """Sample response for GET /v1/license."""
    return {
        "expired": False,
        "activation_date": "2026-01-01T00:00:00Z",
        "expiration_date": "2026-10-29T12:00:00Z",
        "shards_limit": 100,
    }


@pytest.fixture
def nodes_response():
    """Sample response for GET /v1/nodes."""
    return [
        {"uid": 1, "total_memory": 400, "cores": 4, "status": "active", "addr": "10.0.0.1"},
        {"uid": 2, "total_memory": 400, "cores": 4, "status": "active", "addr": "10.0.0.2"},
        {"uid": 3, "total_memory": 200, "cores": 2, "status": "down", "addr": "10.0.0.3"},
    ]


@pytest.fixture
def bdbs_response():
    """Sample response for GET /v1/bdbs."""
    return [
        {
            "uid": 1,
            "name": "cache",
            "memory_size": 200,
            "shards_count": 2,
            "endpoints": [{"uid": "1:1", "port": 12000}],
            "bigstore": False,
            "crdt": False,
            "crdt_sync": "disabled",
            "type": "redis",
        },
        {
            "uid": 2,
            "name": "flash",
            "memory_size": 500,
            "shards_count": 4,
            "endpoints": [{"uid": "2:1", "port": 12001}, {"uid": "2:2", "port": 12002}],
            "bigstore": True,
            "crdt": False,
            "crdt_sync": "disabled",
        },
        {
            "uid": 3,
            "name": "geo",
            "memory_size": 300,
            "shards_count": 1,
            "endpoints": [{"uid": "3:1", "port": 12003}],
            "bigstore": False,
            "crdt": True,
            "crdt_sync": "enabled",
        },
    ]


@pytest.fixture
def bdb_stats_response():
    """Sample response for GET /v1/bdbs/stats/last."""
    return {
        "1": stats_record(used_memory=50, total_req=1000),
        "2": stats_record(used_memory=100, total_req=500, **BIGSTORE_STATS),
        "3": stats_record(used_memory=50, total_req=250),
    }


@pytest.fixture
def crdt_stats_response():
    """Sample response for GET /v1/bdbs/stats/3."""
    return {
        "uid": "3",
        "intervals": [
            {
                "interval": "10sec",
                "stime": "2026-10-19T11:59:00Z",
                "etime": "2026-10-19T11:59:10Z",
                "crdt_egress_bytes": 1,
                "crdt_egress_bytes_decompressed": 2,
                "crdt_ingress_bytes": 3,
                "crdt_ingress_bytes_decompressed": 4,
                "crdt_pending_local_writes_max": 5,
                "crdt_pending_local_writes_min": 6,
                "crdt_local_ingress_lag_time": 7,
            },
            {
                "interval": "10sec",
                "stime": "2026-10-19T11:59:50Z",
                "etime": "2026-10-19T12:00:00Z",
                "crdt_egress_bytes": 10,
                "crdt_egress_bytes_decompressed": 20,
                "crdt_ingress_bytes": 30,
                "crdt_ingress_bytes_decompressed": 40,
                "crdt_pending_local_writes_max": 50,
                "crdt_pending_local_writes_min": 60,
                "crdt_local_ingress_lag_time": 70,
            },
        ],
    }


@pytest.fixture
def api_responses(
    cluster_response,
    license_response,
    nodes_response,
    bdbs_response,
    bdb_stats_response,
    crdt_stats_response,
):
    """Responses of a healthy leader node, keyed by path."""
    return {
        "/v1/cluster": {"json": cluster_response},
        "/v1/license": {"json": license_response},
        "/v1/nodes": {"json": nodes_response},
        "/v1/bdbs": {"json": bdbs_response},
        "/v1/bdbs/stats/last": {"json": bdb_stats_response},
        "/v1/bdbs/stats/3": {"json": crdt_stats_response},
    }


@pytest.fixture
def redirect_response():
    """How a non-leader node answers GET /v1/cluster."""
    return {
        "status_code": 307,
        "headers": {"location": "https://leader:9443/v1/cluster"},
    }


@pytest.fixture
def make_stats():
    """Factory for database stats records."""
    return stats_record


@pytest.fixture
def bigstore_stats():
    """Tiered-storage fields of a Bigstore stats record."""
    return dict(BIGSTORE_STATS)


@pytest.fixture
def make_transport():
    """Factory for MockTransport instances."""
    return MockTransport


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep REDISENTERPRISE_* variables of the test host out of the tests."""
    for name in list(os.environ):
        if name.startswith("REDISENTERPRISE_"):
            monkeypatch.delenv(name)
