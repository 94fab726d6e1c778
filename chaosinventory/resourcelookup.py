"""Cached, sorted inventories of chaos-injection targets."""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping, Sequence
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Protocol

from .naming import extract_ns_prefix
from .networkdependencies import DependencyGraph, default_graph
from .serviceendpoints import SERVICE_ENDPOINTS, ServiceEndpoint

RABBITMQ_ADDRESS = "ts-rabbitmq"

LabelFetcher = Callable[[str, str], Sequence[str]]
ContainerFetcher = Callable[[str], Iterable[Mapping[str, str]]]


class _ClassMethod(Protocol):
    class_name: str
    method_name: str


class _DatabaseOperation(Protocol):
    db_name: str
    db_table: str
    operation: str


@dataclass(frozen=True, order=True)
class AppMethodPair:
    app_name: str
    class_name: str
    method_name: str


@dataclass(frozen=True)
class AppEndpointPair:
    app_name: str
    route: str
    method: str
    server_address: str
    server_port: str


@dataclass(frozen=True, order=True)
class AppNetworkPair:
    source_service: str
    target_service: str


@dataclass(frozen=True, order=True)
class AppDNSPair:
    app_name: str
    domain: str


@dataclass(frozen=True, order=True)
class AppDatabasePair:
    app_name: str
    db_name: str
    table_name: str
    operation_type: str


@dataclass(frozen=True)
class ContainerInfo:
    pod_name: str
    app_label: str
    container_name: str


class PreloadError(Exception):
    """Raised when one or more caches could not be preloaded."""

    def __init__(self, errors: list[str]) -> None:
        self.errors = errors
        super().__init__(f"cache preloading encountered errors: {errors[0]}")


class ResourceLookup:
    """Builds and caches sorted lists of apps, endpoints, pairs and containers."""

    def __init__(
        self,
        *,
        label_fetcher: LabelFetcher | None = None,
        container_fetcher: ContainerFetcher | None = None,
        class_methods: Mapping[str, Iterable[_ClassMethod]] | None = None,
        database_operations: Mapping[str, Iterable[_DatabaseOperation]] | None = None,
        endpoints: Mapping[str, Iterable[ServiceEndpoint]] | None = None,
        dependency_graph: DependencyGraph | None = None,
    ) -> None:
        self._label_fetcher = label_fetcher
        self._container_fetcher = container_fetcher
        self._class_methods = class_methods if class_methods is not None else {}
        self._database_operations = database_operations if database_operations is not None else {}
        self._endpoints = endpoints if endpoints is not None else SERVICE_ENDPOINTS
        self._dependency_graph = dependency_graph
        self.invalidate()

    def invalidate(self) -> None:
        """Drop every cached result."""
        self._labels: dict[str, list[str]] = {}
        self._containers: dict[str, list[ContainerInfo]] = {}
        self._methods: list[AppMethodPair] | None = None
        self._http: list[AppEndpointPair] | None = None
        self._network: list[AppNetworkPair] | None = None
        self._dns: list[AppDNSPair] | None = None
        self._db: list[AppDatabasePair] | None = None

    def app_labels(self, namespace: str, key: str) -> list[str]:
        """Return the app labels of a namespace, sorted; non-empty results are cached per prefix."""
        prefix = extract_ns_prefix(namespace)
        cached = self._labels.get(prefix)
        if cached:
            return list(cached)
        if self._label_fetcher is None:
            raise RuntimeError("no label fetcher configured")
        labels = sorted(self._label_fetcher(namespace, key))
        self._labels[prefix] = labels
        return list(labels)

    def jvm_methods(self) -> list[AppMethodPair]:
        """Return every app/class/method combination, sorted."""
        if self._methods is None:
            self._methods = sorted(
                AppMethodPair(service, m.class_name, m.method_name)
                for service, methods in self._class_methods.items()
                for m in methods
            )
        return list(self._methods)

    def http_endpoints(self) -> list[AppEndpointPair]:
        """Return routed HTTP endpoints, excluding message-queue traffic, sorted by app and route."""
        if self._http is None:
            result = [
                AppEndpointPair(
                    service,
                    ep.route,
                    ep.request_method,
                    ep.server_address,
                    ep.server_port,
                )
                for service, endpoints in self._endpoints.items()
                for ep in endpoints
                if ep.server_address != RABBITMQ_ADDRESS and ep.route
            ]
            result.sort(key=lambda p: (p.app_name, p.route))
            self._http = result
        return list(self._http)

    def network_pairs(self) -> list[AppNetworkPair]:
        """Return every source/target service pair, sorted."""
        if self._network is None:
            graph = self._dependency_graph or default_graph()
            self._network = sorted(
                AppNetworkPair(p.source_service, p.target_service)
                for p in graph.all_service_pairs()
            )
        return list(self._network)

    def dns_endpoints(self) -> list[AppDNSPair]:
        """Return the distinct domains each app resolves, excluding itself, sorted."""
        if self._dns is None:
            result: list[AppDNSPair] = []
            for service, endpoints in self._endpoints.items():
                domains = {
                    ep.server_address
                    for ep in endpoints
                    if ep.server_address and ep.server_address != service
                }
                result.extend(AppDNSPair(service, domain) for domain in domains)
            self._dns = sorted(result)
        return list(self._dns)

    def database_operations(self) -> list[AppDatabasePair]:
        """Return every app/database/table/operation combination, sorted."""
        if self._db is None:
            self._db = sorted(
                AppDatabasePair(service, op.db_name, op.db_table, op.operation)
                for service, operations in self._database_operations.items()
                for op in operations
            )
        return list(self._db)

    def containers(self, namespace: str) -> list[ContainerInfo]:
        """Return the containers of a namespace sorted by app label and name; cached per prefix."""
        prefix = extract_ns_prefix(namespace)
        cached = self._containers.get(prefix)
        if cached is not None:
            return list(cached)
        if self._container_fetcher is None:
            raise RuntimeError("no container fetcher configured")
        result = [
            ContainerInfo(
                pod_name=c.get("podName", ""),
                app_label=c.get("appLabel", ""),
                container_name=c.get("containerName", ""),
            )
            for c in self._container_fetcher(namespace)
        ]
        result.sort(key=lambda c: (c.app_label, c.container_name))
        self._containers[prefix] = result
        return list(result)

    def containers_by_service(self, namespace: str, service_name: str) -> list[str]:
        """Return the container names of one service, sorted."""
        return sorted(
            c.container_name for c in self.containers(namespace) if c.app_label == service_name
        )

    def pods_by_service(self, namespace: str, service_name: str) -> list[str]:
        """Return the distinct pod names of one service, sorted."""
        return sorted(
            {c.pod_name for c in self.containers(namespace) if c.app_label == service_name}
        )

    def containers_and_pods_by_services(
        self, namespace: str, service_names: Iterable[str]
    ) -> tuple[list[str], list[str]]:
        """Return the distinct containers and pods of several services, each sorted."""
        wanted = set(service_names)
        selected = [c for c in self.containers(namespace) if c.app_label in wanted]
        containers = sorted({c.container_name for c in selected})
        pods = sorted({c.pod_name for c in selected})
        return containers, pods

    def preload(self, namespace: str, label_key: str) -> None:
        """Fill every cache concurrently; raise PreloadError if any load fails."""
        tasks: list[tuple[str, Callable[[], object]]] = [
            ("app labels", lambda: self.app_labels(namespace, label_key)),
            ("JVM methods", self.jvm_methods),
            ("HTTP endpoints", self.http_endpoints),
            ("network pairs", self.network_pairs),
            ("DNS endpoints", self.dns_endpoints),
            ("database operations", self.database_operations),
            ("container info", lambda: self.containers(namespace)),
        ]
        with ThreadPoolExecutor(max_workers=len(tasks)) as pool:
            futures = [(name, pool.submit(task)) for name, task in tasks]
            errors = [
                f"failed to preload {name} cache: {exc}"
                for name, future in futures
                if (exc := future.exception()) is not None
            ]
        if errors:
            raise PreloadError(errors)