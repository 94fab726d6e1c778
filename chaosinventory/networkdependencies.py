"""Service-to-service dependency graph derived from observed endpoints."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from functools import cache

from .serviceendpoints import SERVICE_ENDPOINTS, ServiceEndpoint

CONNECTION_DETAILS = "HTTP/gRPC Communication"


@dataclass(frozen=True)
class ServiceDependency:
    """A directed communication link between two services."""

    source_service: str
    target_service: str
    connection_details: str = CONNECTION_DETAILS


class DependencyGraph:
    """Maps each service to the services it communicates with, in insertion order."""

    def __init__(self) -> None:
        self._graph: dict[str, list[str]] = {}

    @classmethod
    def from_endpoints(
        cls, endpoints_by_service: Mapping[str, Iterable[ServiceEndpoint]]
    ) -> DependencyGraph:
        """Build a bidirectional graph from each service's outbound endpoints."""
        graph = cls()
        for service, endpoints in endpoints_by_service.items():
            for endpoint in endpoints:
                graph.add_dependency(service, endpoint.server_address)
                graph.add_dependency(endpoint.server_address, service)
        return graph

    def add_dependency(self, source_service: str, target_service: str) -> None:
        """Record that the source talks to the target; self-links and repeats are ignored."""
        if source_service == target_service:
            return
        targets = self._graph.setdefault(source_service, [])
        if target_service not in targets:
            targets.append(target_service)

    def dependencies_for(self, service_name: str) -> list[str]:
        """Return the services a service communicates with."""
        return list(self._graph.get(service_name, ()))

    def all_service_pairs(self) -> list[ServiceDependency]:
        """Return every directed source/target pair in the graph."""
        return [
            ServiceDependency(source, target)
            for source, targets in self._graph.items()
            for target in targets
        ]

    def service_pair(self, index: int) -> tuple[str, str] | None:
        """Return the (source, target) pair at an index, or None if out of range."""
        pairs = self.all_service_pairs()
        if 0 <= index < len(pairs):
            pair = pairs[index]
            return pair.source_service, pair.target_service
        return None

    def service_pair_by_service_and_index(self, service_name: str, index: int) -> str | None:
        """Return the index-th dependency of a service, or None if out of range."""
        dependencies = self.dependencies_for(service_name)
        if 0 <= index < len(dependencies):
            return dependencies[index]
        return None

    def count_dependencies(self, service_name: str) -> int:
        """Return how many services a service communicates with."""
        return len(self._graph.get(service_name, ()))

    def service_names(self) -> list[str]:
        """Return all services that have at least one dependency."""
        return [service for service, targets in self._graph.items() if targets]


@cache
def default_graph() -> DependencyGraph:
    """Return the graph built from the known service endpoints."""
    return DependencyGraph.from_endpoints(SERVICE_ENDPOINTS)


def get_dependencies_for_service(service_name: str) -> list[str]:
    """Return the services a known service communicates with."""
    return default_graph().dependencies_for(service_name)


def get_all_service_pairs() -> list[ServiceDependency]:
    """Return every directed pair of the known services."""
    return default_graph().all_service_pairs()


def get_service_pair(index: int) -> tuple[str, str] | None:
    """Return the known (source, target) pair at an index, or None."""
    return default_graph().service_pair(index)


def get_service_pair_by_service_and_index(service_name: str, index: int) -> str | None:
    """Return the index-th dependency of a known service, or None."""
    return default_graph().service_pair_by_service_and_index(service_name, index)


def count_dependencies(service_name: str) -> int:
    """Return how many services a known service communicates with."""
    return default_graph().count_dependencies(service_name)


def list_all_service_names() -> list[str]:
    """Return all known services that have dependencies."""
    return default_graph().service_names()