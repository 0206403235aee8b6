"""
Redis Enterprise REST API client for cluster metrics collection.

This module provides the RedisEnterpriseClient class for querying the
cluster management API: leadership probe, cluster config, license, nodes,
databases, database stats and Active-Active (CRDT) stats.

RedisEnterpriseClient receives an injected httpx.AsyncClient with base_url,
basic auth and TLS settings already applied (see factory.py). Every fetch
returns a freshly validated model; nothing is retained between calls.

Failure mapping:
- httpx request failures -> TransportError
- body that cannot be decompressed -> DecodeError
- any status other than 200 -> UnexpectedStatusError
- body not JSON or not matching the model -> DecodeError

API Documentation:
- https://redis.io/docs/latest/operate/rs/references/rest-api/
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from operator_redisenterprise.exceptions import (
    DecodeError,
    PreconditionError,
    TransportError,
    UnexpectedStatusError,
)
from operator_redisenterprise.types import (
    BDBInfo,
    BDBsResponse,
    BDBStats,
    BDBStatsResponse,
    ClusterInfo,
    CrdtStats,
    CrdtStatsResponse,
    LicenseInfo,
    NodeAggregate,
    NodesResponse,
)

logger = logging.getLogger(__name__)

CLUSTER_PATH = "/v1/cluster"

M = TypeVar("M", bound=BaseModel)

# Sampling granularity for CRDT stats queries
CRDT_STATS_INTERVAL = "10sec"


@dataclass(frozen=True)
class StatsWindow:
    """
    Time window for a stats query ending now.

    Attributes:
        start: Window start, timezone-aware.
        interval: Sampling granularity understood by the API.
    """

    start: datetime
    interval: str = CRDT_STATS_INTERVAL

    @classmethod
    def ending_at(cls, now: datetime, seconds: int) -> "StatsWindow":
        """Window covering [now - seconds, now]."""
        return cls(start=now - timedelta(seconds=seconds))

    def params(self) -> dict[str, str]:
        """Query parameters for the stats endpoint."""
        start = self.start.astimezone(timezone.utc)
        return {
            "stime": start.strftime("%Y-%m-%dT%H:%M:%SZ"),
            "interval": self.interval,
        }


@dataclass
class RedisEnterpriseClient:
    """
    Redis Enterprise management API client with injected httpx client.

    Attributes:
        http: Pre-configured httpx.AsyncClient with base_url set to a cluster
            node (e.g., https://node1:9443) and basic auth applied.

    Example:
        async with httpx.AsyncClient(
            base_url="https://node1:9443",
            auth=httpx.BasicAuth("admin@example.com", "secret"),
            verify=False,
        ) as http:
            client = RedisEnterpriseClient(http=http)
            if await client.is_leader():
                for bdb in await client.get_bdbs():
                    print(f"Database {bdb.uid}: {bdb.name}")
    """

    http: httpx.AsyncClient

    async def is_leader(self) -> bool:
        """
        Check whether the polled node is the cluster leader.

        Non-leader nodes answer GET /v1/cluster with a redirect to the
        leader, so redirects are not followed here.

        Returns:
            True on a 2xx response, False on a 3xx redirect.

        Raises:
            TransportError: If the node cannot be reached.
            UnexpectedStatusError: On any other status code.
        """
        response = await self._request(CLUSTER_PATH, follow_redirects=False)
        if 300 <= response.status_code < 400:
            logger.debug(
                "Redirected to %s, not the leader",
                response.headers.get("location", "<no location>"),
            )
            return False
        if response.is_success:
            return True
        raise UnexpectedStatusError(CLUSTER_PATH, response.status_code)

    async def get_cluster(self) -> ClusterInfo:
        """Get the cluster configuration (GET /v1/cluster)."""
        return await self._get_model(CLUSTER_PATH, ClusterInfo)

    async def get_license(self) -> LicenseInfo:
        """Get the cluster license (GET /v1/license)."""
        return await self._get_model("/v1/license", LicenseInfo)

    async def get_nodes(self) -> NodeAggregate:
        """
        Get cluster capacity summed over all nodes.

        Calls GET /v1/nodes and aggregates memory, cores and node counts.
        """
        nodes = await self._get_model("/v1/nodes", NodesResponse)
        return NodeAggregate.from_nodes(nodes.root)

    async def get_bdbs(self) -> list[BDBInfo]:
        """Get all databases in the cluster (GET /v1/bdbs)."""
        data = await self._get_model("/v1/bdbs", BDBsResponse)
        return data.root

    async def get_bdb_stats(self) -> dict[int, BDBStats]:
        """
        Get last-interval stats for every database.

        Calls GET /v1/bdbs/stats/last.

        Returns:
            Mapping of database uid to its stats.
        """
        data = await self._get_model("/v1/bdbs/stats/last", BDBStatsResponse)
        return data.root

    async def get_crdt_stats(self, uid: int, window: StatsWindow) -> CrdtStats:
        """
        Get Active-Active stats for one database over a time window.

        Calls GET /v1/bdbs/stats/{uid} with stime and interval parameters
        and returns the most recent interval. The result depends on the
        wall-clock time of the call.

        Args:
            uid: Database uid.
            window: Query window, usually StatsWindow.ending_at(now, seconds).

        Raises:
            PreconditionError: If the API returned no intervals.
        """
        path = f"/v1/bdbs/stats/{uid}"
        data = await self._get_model(path, CrdtStatsResponse, params=window.params())
        if not data.intervals:
            raise PreconditionError(f"No CRDT stats intervals for database {uid}")
        return data.intervals[-1]

    # -------------------------------------------------------------------------
    # Request helpers
    # -------------------------------------------------------------------------

    async def _request(
        self,
        path: str,
        params: dict[str, str] | None = None,
        follow_redirects: bool = False,
    ) -> httpx.Response:
        try:
            return await self.http.get(
                path, params=params, follow_redirects=follow_redirects
            )
        except httpx.DecodingError as e:
            raise DecodeError(path, str(e)) from e
        except httpx.RequestError as e:
            raise TransportError(path, str(e) or type(e).__name__) from e

    async def _get_model(
        self,
        path: str,
        model: type[M],
        params: dict[str, str] | None = None,
    ) -> M:
        logger.debug("Fetching %s", path)
        response = await self._request(path, params=params)
        if response.status_code != 200:
            raise UnexpectedStatusError(path, response.status_code)

        try:
            body: Any = response.json()
        except ValueError as e:
            raise DecodeError(path, str(e)) from e

        try:
            return model.model_validate(body)
        except ValidationError as e:
            raise DecodeError(path, str(e)) from e
