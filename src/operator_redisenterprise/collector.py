"""
RedisEnterpriseCollector - one collection cycle against a cluster node.

A cycle runs strictly in order and stops at the first failure:
1. Probe leadership; a non-leader node skips the cycle (returns None)
2. Fetch cluster config, license, nodes, databases and database stats
3. Map the cluster and every database onto entities
4. Attach inventory and metrics, fetching CRDT stats per Active-Active database
5. Return the populated Integration for publishing

Nothing is published for a failed cycle and nothing is kept between
cycles; the caller (infrastructure agent, cron) reschedules.
"""

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timezone

from operator_redisenterprise import __version__
from operator_redisenterprise.api_client import RedisEnterpriseClient, StatsWindow
from operator_redisenterprise.exceptions import CycleTimeoutError, PreconditionError
from operator_redisenterprise.integration import Entity, Integration
from operator_redisenterprise.metrics import (
    EVENT_TYPE,
    ClusterTotals,
    cluster_gauges,
    crdt_gauges,
    crdt_sync_code,
    database_gauges,
)
from operator_redisenterprise.types import (
    BDBInfo,
    BDBStats,
    ClusterInfo,
    LicenseInfo,
    NodeAggregate,
)

logger = logging.getLogger(__name__)

INTEGRATION_NAME = "com.redis.redisenterprise"

CLUSTER_ENTITY_TYPE = "redisecluster"
DATABASE_ENTITY_TYPE = "redisedb"

INVENTORY_KEY = "RedisEnterpriseType"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def map_entities(
    integration: Integration,
    cluster: ClusterInfo,
    bdbs: list[BDBInfo],
) -> tuple[Entity, dict[int, Entity]]:
    """
    Create the cluster entity and one entity per database.

    Database entities are named "<cluster-name>:<database-name>".

    Args:
        integration: Integration that owns the entities.
        cluster: Cluster configuration (its name keys the cluster entity).
        bdbs: Databases of the cluster.

    Returns:
        Tuple of (cluster entity, mapping of database uid to entity).

    Raises:
        PreconditionError: On an empty cluster or database name, or when
            two databases map to the same entity name.
    """
    if not cluster.name:
        raise PreconditionError("Cluster name is empty")

    cluster_entity = integration.entity(cluster.name, CLUSTER_ENTITY_TYPE)

    bdb_entities: dict[int, Entity] = {}
    seen: set[str] = set()
    for bdb in bdbs:
        if not bdb.name:
            raise PreconditionError(f"Database {bdb.uid} has an empty name")
        name = f"{cluster.name}:{bdb.name}"
        if name in seen:
            raise PreconditionError(f"Duplicate database entity name {name!r}")
        seen.add(name)
        bdb_entities[bdb.uid] = integration.entity(name, DATABASE_ENTITY_TYPE)

    return cluster_entity, bdb_entities


@dataclass
class RedisEnterpriseCollector:
    """
    Collects one cycle of Redis Enterprise telemetry.

    Attributes:
        client: API client bound to one cluster node.
        event_time: Seconds of history requested for CRDT stats.
        collect_metrics: Attach metric sets.
        collect_inventory: Attach inventory items.
        clock: Source of the current time (timezone-aware).

    Example:
        collector = RedisEnterpriseCollector(client=RedisEnterpriseClient(http=http))
        integration = await collector.run(timeout=60.0)
        if integration is not None:
            integration.publish()
    """

    client: RedisEnterpriseClient
    event_time: int = 60
    collect_metrics: bool = True
    collect_inventory: bool = True
    clock: Callable[[], datetime] = utc_now

    async def run(self, timeout: float | None = None) -> Integration | None:
        """
        Run collect() under a deadline covering the whole cycle.

        Raises:
            CycleTimeoutError: If the cycle does not finish in time.
        """
        if timeout is None:
            return await self.collect()
        try:
            return await asyncio.wait_for(self.collect(), timeout=timeout)
        except asyncio.TimeoutError:
            raise CycleTimeoutError(timeout) from None

    async def collect(self) -> Integration | None:
        """
        Collect one cycle.

        Returns:
            The populated Integration, or None when the polled node is not
            the cluster leader.

        Raises:
            CollectionError: Any failure; the cycle is abandoned.
        """
        if not await self.client.is_leader():
            logger.info("Node is not the cluster leader, skipping collection")
            return None

        cluster = await self.client.get_cluster()
        license_info = await self.client.get_license()
        nodes = await self.client.get_nodes()
        bdbs = await self.client.get_bdbs()
        bdb_stats = await self.client.get_bdb_stats()
        logger.debug("Cluster %s has %d database(s)", cluster.name, len(bdbs))

        integration = Integration(name=INTEGRATION_NAME, version=__version__)
        cluster_entity, bdb_entities = map_entities(integration, cluster, bdbs)

        if self.collect_inventory:
            cluster_entity.set_inventory_item(INVENTORY_KEY, "value", "cluster")
            for entity in bdb_entities.values():
                entity.set_inventory_item(INVENTORY_KEY, "value", "database")

        if self.collect_metrics:
            await self._attach_metrics(
                cluster_entity, bdb_entities, license_info, nodes, bdbs, bdb_stats
            )

        return integration

    async def _attach_metrics(
        self,
        cluster_entity: Entity,
        bdb_entities: dict[int, Entity],
        license_info: LicenseInfo,
        nodes: NodeAggregate,
        bdbs: list[BDBInfo],
        bdb_stats: dict[int, BDBStats],
    ) -> None:
        cluster_ms = cluster_entity.new_metric_set(EVENT_TYPE)
        totals = ClusterTotals()

        for bdb in bdbs:
            stats = bdb_stats.get(bdb.uid)
            if stats is None:
                raise PreconditionError(f"No stats reported for database {bdb.uid}")

            bdb_ms = bdb_entities[bdb.uid].new_metric_set(EVENT_TYPE)
            bdb_ms.set_gauges(database_gauges(bdb, stats))
            totals.add(bdb, stats)
            logger.debug(
                "Database %s (%s): bigstore=%s crdt=%s",
                bdb.uid,
                bdb.name,
                bdb.bigstore,
                bdb.crdt,
            )

            if bdb.crdt:
                bdb_ms.set_gauge("bdb.CrdtSyncStatus", crdt_sync_code(bdb))
                window = StatsWindow.ending_at(self.clock(), self.event_time)
                logger.debug(
                    "Fetching CRDT stats for database %s from %s",
                    bdb.uid,
                    window.params()["stime"],
                )
                crdt = await self.client.get_crdt_stats(bdb.uid, window)
                bdb_ms.set_gauges(crdt_gauges(crdt))

        cluster_ms.set_gauges(
            cluster_gauges(license_info, nodes, totals, self.clock())
        )
