"""
Redis Enterprise integration for the infrastructure agent.

Polls a Redis Enterprise cluster management API and reports cluster and
database metrics as an entity/metric-set graph. It includes:

- RedisEnterpriseClient: REST API client (leadership probe and fetchers)
- RedisEnterpriseCollector: one collection cycle, from probe to graph
- Integration: entity/metric-set graph and its JSON publisher
- Redis Enterprise response types for API parsing
- Metric derivation helpers for database and cluster gauges
"""

__version__ = "0.1.0"

from operator_redisenterprise.api_client import RedisEnterpriseClient, StatsWindow
from operator_redisenterprise.collector import (
    INTEGRATION_NAME,
    RedisEnterpriseCollector,
    map_entities,
)
from operator_redisenterprise.config import Settings
from operator_redisenterprise.exceptions import (
    CollectionError,
    CycleTimeoutError,
    DecodeError,
    PreconditionError,
    TransportError,
    UnexpectedStatusError,
)
from operator_redisenterprise.integration import Entity, Integration, MetricSet
from operator_redisenterprise.types import (
    BDBInfo,
    BDBStats,
    ClusterInfo,
    CrdtStats,
    LicenseInfo,
    NodeAggregate,
    NodeInfo,
)

__all__ = [
    "__version__",
    # Collection
    "RedisEnterpriseClient",
    "RedisEnterpriseCollector",
    "StatsWindow",
    "map_entities",
    "INTEGRATION_NAME",
    "Settings",
    # Published graph
    "Integration",
    "Entity",
    "MetricSet",
    # Errors
    "CollectionError",
    "TransportError",
    "UnexpectedStatusError",
    "DecodeError",
    "PreconditionError",
    "CycleTimeoutError",
    # API types
    "ClusterInfo",
    "LicenseInfo",
    "NodeInfo",
    "NodeAggregate",
    "BDBInfo",
    "BDBStats",
    "CrdtStats",
]
