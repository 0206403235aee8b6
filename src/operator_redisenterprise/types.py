"""
Redis Enterprise REST API response types.

This module provides Pydantic models for parsing responses from the
cluster management API (https://<node>:9443/v1/...):
- Cluster configuration and license
- Node list (aggregated into NodeAggregate)
- Database (BDB) list and last-interval stats
- Per-database CRDT (Active-Active) stats intervals

These are API response types for external data validation. The one
internal aggregate (NodeAggregate) is a dataclass.

Notes:
- The API calls databases "bdbs" and identifies them by integer uid
- /v1/bdbs/stats/last is keyed by uid as a JSON string ("1", "2", ...)
- Unknown fields are ignored; the API returns far more than we use
"""

from dataclasses import dataclass
from datetime import datetime, timezone

from pydantic import BaseModel, Field, RootModel, field_validator


# =============================================================================
# Cluster-level Types
# =============================================================================


class ClusterInfo(BaseModel):
    """
    Response from GET /v1/cluster.

    Only the name is used; it keys the cluster entity and prefixes every
    database entity name.
    """

    name: str


class LicenseInfo(BaseModel):
    """
    Response from GET /v1/license.

    Example response:
    {
        "expired": false,
        "expiration_date": "2027-01-01T00:00:00Z",
        "shards_limit": 4
    }
    """

    expired: bool = False
    expiration_date: datetime
    shards_limit: int

    @field_validator("expiration_date")
    @classmethod
    def _assume_utc(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value

    def days_until_expiration(self, now: datetime) -> int:
        """
        Whole days from now until the license expires.

        Negative once the license has expired.
        """
        return (self.expiration_date - now).days


class NodeInfo(BaseModel):
    """Single node entry from GET /v1/nodes."""

    uid: int
    total_memory: int = 0  # bytes
    cores: int = 0
    status: str = ""  # "active", "provisioning", "down", ...


class NodesResponse(RootModel[list[NodeInfo]]):
    """Response from GET /v1/nodes: a bare JSON array of nodes."""


@dataclass(frozen=True)
class NodeAggregate:
    """
    Cluster capacity summed over every configured node.

    Attributes:
        total_memory: Sum of node memory in bytes.
        total_cores: Sum of node CPU cores.
        active_nodes: Nodes whose status is "active".
        node_count: All configured nodes.
    """

    total_memory: int
    total_cores: int
    active_nodes: int
    node_count: int

    @classmethod
    def from_nodes(cls, nodes: list[NodeInfo]) -> "NodeAggregate":
        return cls(
            total_memory=sum(n.total_memory for n in nodes),
            total_cores=sum(n.cores for n in nodes),
            active_nodes=sum(1 for n in nodes if n.status == "active"),
            node_count=len(nodes),
        )


# =============================================================================
# Database (BDB) Types
# =============================================================================


class BDBInfo(BaseModel):
    """
    Single database entry from GET /v1/bdbs.

    Attributes:
        uid: Cluster-unique database id, stable across polls.
        name: Database name.
        memory_size: Memory limit in bytes.
        shards_count: Number of primary shards.
        endpoints: Endpoint objects; only their count is reported.
        bigstore: Tiered storage (Redis on Flash) enabled.
        crdt: Active-Active replication enabled.
        crdt_sync: Replication sync status, a name or an integer code.
    """

    uid: int
    name: str
    memory_size: int
    shards_count: int
    endpoints: list[dict] = Field(default_factory=list)
    bigstore: bool = False
    crdt: bool = False
    crdt_sync: str | int = "disabled"

    @property
    def endpoint_count(self) -> int:
        return len(self.endpoints)


class BDBsResponse(RootModel[list[BDBInfo]]):
    """Response from GET /v1/bdbs: a bare JSON array of databases."""


class BDBStats(BaseModel):
    """
    Last-interval stats for one database.

    The tiered-storage fields are only reported for Bigstore databases
    and are None otherwise.
    """

    avg_latency: float
    avg_read_latency: float
    avg_write_latency: float
    conns: float
    egress_bytes: float
    evicted_objects: float
    expired_objects: float
    ingress_bytes: float
    other_req: float
    read_hits: float
    read_misses: float
    read_req: float
    shard_cpu_system: float
    shard_cpu_user: float
    total_req: float
    used_memory: float
    write_hits: float
    write_misses: float
    write_req: float

    # Tiered storage (Bigstore / Redis on Flash)
    bigstore_objs_ram: float | None = None
    bigstore_objs_flash: float | None = None
    bigstore_io_reads: float | None = None
    bigstore_io_writes: float | None = None
    bigstore_throughput: float | None = None
    big_write_ram: float | None = None
    big_write_flash: float | None = None
    big_del_ram: float | None = None
    big_del_flash: float | None = None


class BDBStatsResponse(RootModel[dict[int, BDBStats]]):
    """
    Response from GET /v1/bdbs/stats/last.

    Example response:
    {
        "1": {"avg_latency": 0.0002, "used_memory": 2097152, ...},
        "2": {...}
    }
    """


# =============================================================================
# CRDT (Active-Active) Types
# =============================================================================


class CrdtStats(BaseModel):
    """One stats interval of an Active-Active database."""

    interval: str = ""
    stime: str = ""
    etime: str = ""
    crdt_egress_bytes: float
    crdt_egress_bytes_decompressed: float
    crdt_ingress_bytes: float
    crdt_ingress_bytes_decompressed: float
    crdt_pending_local_writes_max: float
    crdt_pending_local_writes_min: float
    crdt_local_ingress_lag_time: float


class CrdtStatsResponse(BaseModel):
    """
    Response from GET /v1/bdbs/stats/{uid}.

    Intervals are ordered oldest first.
    """

    uid: int | str | None = None
    intervals: list[CrdtStats] = Field(default_factory=list)
