"""
Entity and metric-set graph published to the infrastructure agent.

An Integration owns Entities; each Entity carries inventory items and one
or more MetricSets of float gauges. publish() writes the whole graph as a
single JSON document in the agent's integration protocol v3 format:

    {
        "name": "com.redis.redisenterprise",
        "protocol_version": "3",
        "integration_version": "0.1.0",
        "data": [
            {
                "entity": {"name": "c1", "type": "redisecluster", "id_attributes": []},
                "metrics": [{"event_type": "RedisEnterprise", "cluster.ClusterNodes": 3.0, ...}],
                "inventory": {"RedisEnterpriseType": {"value": "cluster"}},
                "events": []
            }
        ]
    }
"""

import sys
from dataclasses import dataclass, field
from typing import Any, TextIO

from pydantic import BaseModel, Field

from operator_redisenterprise.exceptions import PreconditionError

PROTOCOL_VERSION = "3"


# =============================================================================
# Payload models
# =============================================================================


class EntityKey(BaseModel):
    """Identity of one entity in the payload."""

    name: str
    type: str
    id_attributes: list[dict[str, str]] = Field(default_factory=list)


class EntityData(BaseModel):
    """Everything reported for one entity."""

    entity: EntityKey
    metrics: list[dict[str, Any]] = Field(default_factory=list)
    inventory: dict[str, dict[str, Any]] = Field(default_factory=dict)
    events: list[dict[str, Any]] = Field(default_factory=list)


class IntegrationPayload(BaseModel):
    """Top-level protocol v3 document."""

    name: str
    protocol_version: str = PROTOCOL_VERSION
    integration_version: str
    data: list[EntityData] = Field(default_factory=list)


# =============================================================================
# Graph
# =============================================================================


@dataclass
class MetricSet:
    """
    Named float gauges reported under one event type.

    Attributes:
        event_type: Event type the backend stores the sample under.
        entity_name: Name of the owning entity.
        entity_type: Type of the owning entity.
        gauges: Gauge values by metric name, in insertion order.
    """

    event_type: str
    entity_name: str
    entity_type: str
    gauges: dict[str, float] = field(default_factory=dict)

    def set_gauge(self, name: str, value: float) -> None:
        """Set a gauge, stored as float regardless of the source type."""
        self.gauges[name] = float(value)

    def set_gauges(self, values: dict[str, float]) -> None:
        for name, value in values.items():
            self.set_gauge(name, value)

    def to_sample(self) -> dict[str, Any]:
        return {
            "event_type": self.event_type,
            "entityName": f"{self.entity_type}:{self.entity_name}",
            "displayName": self.entity_name,
            **self.gauges,
        }


@dataclass
class Entity:
    """A monitored thing: the cluster or one database."""

    name: str
    entity_type: str
    metric_sets: list[MetricSet] = field(default_factory=list)
    inventory: dict[str, dict[str, Any]] = field(default_factory=dict)

    def new_metric_set(self, event_type: str) -> MetricSet:
        metric_set = MetricSet(
            event_type=event_type,
            entity_name=self.name,
            entity_type=self.entity_type,
        )
        self.metric_sets.append(metric_set)
        return metric_set

    def set_inventory_item(self, key: str, item_field: str, value: Any) -> None:
        self.inventory.setdefault(key, {})[item_field] = value

    def to_data(self) -> EntityData:
        return EntityData(
            entity=EntityKey(name=self.name, type=self.entity_type),
            metrics=[ms.to_sample() for ms in self.metric_sets],
            inventory=self.inventory,
        )


@dataclass
class Integration:
    """
    Root of the published graph.

    Entities are unique per (name, type); asking again for the same pair
    returns the entity already created.

    Example:
        integration = Integration(name="com.redis.redisenterprise", version="0.1.0")
        cluster = integration.entity("c1", "redisecluster")
        cluster.new_metric_set("RedisEnterprise").set_gauge("cluster.ClusterNodes", 3)
        integration.publish()
    """

    name: str
    version: str
    entities: dict[tuple[str, str], Entity] = field(default_factory=dict)

    def entity(self, name: str, entity_type: str) -> Entity:
        """
        Get or create the entity for (name, entity_type).

        Raises:
            PreconditionError: If name or entity_type is empty.
        """
        if not name or not entity_type:
            raise PreconditionError(
                f"Entity name and type must be non-empty (got {name!r}, {entity_type!r})"
            )
        key = (name, entity_type)
        if key not in self.entities:
            self.entities[key] = Entity(name=name, entity_type=entity_type)
        return self.entities[key]

    def payload(self) -> IntegrationPayload:
        return IntegrationPayload(
            name=self.name,
            integration_version=self.version,
            data=[e.to_data() for e in self.entities.values()],
        )

    def publish(self, stream: TextIO | None = None, pretty: bool = False) -> None:
        """Write the payload as one JSON document followed by a newline."""
        out = stream if stream is not None else sys.stdout
        out.write(self.payload().model_dump_json(indent=2 if pretty else None))
        out.write("\n")
        out.flush()
