"""
Metric derivation for Redis Enterprise clusters and databases.

Turns validated API records into (metric name, float) gauges:
- Per-database gauges, with the tiered-storage group added for Bigstore
  databases and the CRDT group for Active-Active databases
- Derived percentages (used memory against limit or cluster capacity)
- Cluster totals accumulated across databases

Gauge tables read typed record attributes directly. Percentages raise
PreconditionError on a zero denominator.
"""

from dataclasses import dataclass
from datetime import datetime

from operator_redisenterprise.exceptions import PreconditionError
from operator_redisenterprise.types import (
    BDBInfo,
    BDBStats,
    CrdtStats,
    LicenseInfo,
    NodeAggregate,
)

# Event type for every metric set this integration reports
EVENT_TYPE = "RedisEnterprise"

# Numeric codes reported as bdb.CrdtSyncStatus
CRDT_SYNC_CODES = {
    "disabled": 0,
    "enabled": 1,
    "paused": 2,
    "stopped": 3,
}

BIGSTORE_METRIC_NAMES = (
    "bdb.BigstoreObjsRam",
    "bdb.BigstoreObjsFlash",
    "bdb.BigstoreIoReads",
    "bdb.BigstoreIoWrites",
    "bdb.BigstoreThroughput",
    "bdb.BigWriteRam",
    "bdb.BigWriteFlash",
    "bdb.BigDelRam",
    "bdb.BigDelFlash",
)


def percent(part: float, whole: float, what: str) -> float:
    """
    Return 100 * part / whole.

    Raises:
        PreconditionError: If whole is zero.
    """
    if whole == 0:
        raise PreconditionError(f"Cannot derive {what}: denominator is zero")
    return 100 * (part / whole)


def bdb_config_gauges(bdb: BDBInfo) -> dict[str, float]:
    """Gauges taken from the database configuration."""
    return {
        "bdb.ShardCount": bdb.shards_count,
        "bdb.Endpoints": bdb.endpoint_count,
        "bdb.MemoryLimit": bdb.memory_size,
    }


def bdb_stats_gauges(stats: BDBStats) -> dict[str, float]:
    """Passthrough gauges every database reports."""
    return {
        "bdb.AvgLatency": stats.avg_latency,
        "bdb.AvgReadLatency": stats.avg_read_latency,
        "bdb.AvgWriteLatency": stats.avg_write_latency,
        "bdb.Conns": stats.conns,
        "bdb.EgressBytes": stats.egress_bytes,
        "bdb.EvictedObjects": stats.evicted_objects,
        "bdb.ExpiredObjects": stats.expired_objects,
        "bdb.IngressBytes": stats.ingress_bytes,
        "bdb.OtherReq": stats.other_req,
        "bdb.ReadHits": stats.read_hits,
        "bdb.ReadMisses": stats.read_misses,
        "bdb.ReadReq": stats.read_req,
        "bdb.ShardCPUSystem": stats.shard_cpu_system,
        "bdb.ShardCPUUser": stats.shard_cpu_user,
        "bdb.TotalReq": stats.total_req,
        "bdb.UsedMemory": stats.used_memory,
        "bdb.WriteHits": stats.write_hits,
        "bdb.WriteMisses": stats.write_misses,
        "bdb.WriteReq": stats.write_req,
    }


def bigstore_gauges(uid: int, stats: BDBStats) -> dict[str, float]:
    """
    Tiered-storage gauges of a Bigstore database.

    Raises:
        PreconditionError: If any tiered-storage field is absent.
    """
    values = dict(
        zip(
            BIGSTORE_METRIC_NAMES,
            (
                stats.bigstore_objs_ram,
                stats.bigstore_objs_flash,
                stats.bigstore_io_reads,
                stats.bigstore_io_writes,
                stats.bigstore_throughput,
                stats.big_write_ram,
                stats.big_write_flash,
                stats.big_del_ram,
                stats.big_del_flash,
            ),
        )
    )
    missing = [name for name, value in values.items() if value is None]
    if missing:
        raise PreconditionError(
            f"Bigstore database {uid} stats missing: {', '.join(missing)}"
        )
    return values


def database_gauges(bdb: BDBInfo, stats: BDBStats) -> dict[str, float]:
    """
    All stats-derived gauges for one database, CRDT group excluded.

    Includes config gauges, passthrough gauges, the tiered-storage group
    when bdb.bigstore is set, and bdb.UsedMemoryPercent.
    """
    gauges = bdb_config_gauges(bdb)
    gauges.update(bdb_stats_gauges(stats))
    if bdb.bigstore:
        gauges.update(bigstore_gauges(bdb.uid, stats))
    gauges["bdb.UsedMemoryPercent"] = percent(
        stats.used_memory, bdb.memory_size, f"used memory percent of database {bdb.uid}"
    )
    return gauges


def crdt_sync_code(bdb: BDBInfo) -> int:
    """
    Numeric sync status of an Active-Active database.

    Raises:
        PreconditionError: If the status name is not recognised.
    """
    if isinstance(bdb.crdt_sync, int):
        return bdb.crdt_sync
    try:
        return CRDT_SYNC_CODES[bdb.crdt_sync]
    except KeyError:
        raise PreconditionError(
            f"Unknown crdt_sync status {bdb.crdt_sync!r} for database {bdb.uid}"
        ) from None


def crdt_gauges(stats: CrdtStats) -> dict[str, float]:
    """Replication traffic gauges of an Active-Active database."""
    return {
        "crdt.CrdtEgressBytes": stats.crdt_egress_bytes,
        "crdt.CrdtEgressBytesDecompressed": stats.crdt_egress_bytes_decompressed,
        "crdt.CrdtIngressBytes": stats.crdt_ingress_bytes,
        "crdt.CrdtIngressBytesDecompressed": stats.crdt_ingress_bytes_decompressed,
        "crdt.CrdtPendingLocalWritesMax": stats.crdt_pending_local_writes_max,
        "crdt.CrdtPendingLocalWritesMin": stats.crdt_pending_local_writes_min,
        "crdt.CrdtLocalIngressLagTime": stats.crdt_local_ingress_lag_time,
    }


@dataclass
class ClusterTotals:
    """Running sums over the databases of one cycle."""

    shards_used: int = 0
    memory_used: float = 0.0
    total_requests: float = 0.0

    def add(self, bdb: BDBInfo, stats: BDBStats) -> None:
        self.shards_used += bdb.shards_count
        self.memory_used += stats.used_memory
        self.total_requests += stats.total_req


def cluster_gauges(
    license_info: LicenseInfo,
    nodes: NodeAggregate,
    totals: ClusterTotals,
    now: datetime,
) -> dict[str, float]:
    """
    Cluster-level gauges, including the aggregates over all databases.

    Raises:
        PreconditionError: If the cluster reports zero total memory.
    """
    return {
        "cluster.DaysUntilExpiration": license_info.days_until_expiration(now),
        "cluster.ShardsLicense": license_info.shards_limit,
        "cluster.ClusterTotalMemory": nodes.total_memory,
        "cluster.ClusterTotalCores": nodes.total_cores,
        "cluster.ClusterActiveNodes": nodes.active_nodes,
        "cluster.ClusterNodes": nodes.node_count,
        "cluster.TotalShardsUsed": totals.shards_used,
        "cluster.TotalMemoryUsed": totals.memory_used,
        "cluster.TotalMemoryUsedPercent": percent(
            totals.memory_used, nodes.total_memory, "cluster total memory used percent"
        ),
        "cluster.TotalReqs": totals.total_requests,
    }
