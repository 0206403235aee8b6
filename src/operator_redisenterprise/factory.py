"""
Factory functions for creating the HTTP client and collector.

Keeps connection details (base URL, basic auth, TLS, timeouts) out of the
client and collector, which only receive ready-to-use objects.
"""

import httpx

from operator_redisenterprise.api_client import RedisEnterpriseClient
from operator_redisenterprise.collector import RedisEnterpriseCollector
from operator_redisenterprise.config import Settings


def build_http_client(settings: Settings) -> httpx.AsyncClient:
    """
    Create an httpx client for the management API of one cluster node.

    The caller owns the client and must close it (use it with async with).
    Redirects are never followed; a redirect is how a non-leader node
    answers.
    """
    return httpx.AsyncClient(
        base_url=settings.base_url,
        auth=httpx.BasicAuth(settings.username, settings.password.get_secret_value()),
        verify=settings.verify_tls,
        timeout=settings.request_timeout,
        follow_redirects=False,
    )


def create_collector(
    settings: Settings,
    http: httpx.AsyncClient,
) -> RedisEnterpriseCollector:
    """
    Create a collector wired to the given HTTP client.

    Args:
        settings: Integration settings (event time, what to collect).
        http: Client from build_http_client(), or a test double.

    Returns:
        RedisEnterpriseCollector ready for run().

    Example:
        settings = Settings()
        async with build_http_client(settings) as http:
            collector = create_collector(settings, http)
            integration = await collector.run(timeout=settings.cycle_timeout)
    """
    return RedisEnterpriseCollector(
        client=RedisEnterpriseClient(http=http),
        event_time=settings.event_time,
        collect_metrics=settings.collect_metrics,
        collect_inventory=settings.collect_inventory,
    )
