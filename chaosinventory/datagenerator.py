"""Render observed endpoints and database operations as importable data modules."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import astuple, dataclass, field
from pathlib import Path
from typing import Union
import os

from .clickhouse import DatabaseOperation
from .serviceendpoints import ServiceEndpoint

PathLike = Union[str, "os.PathLike[str]"]

_ENDPOINTS_PREAMBLE = '''# Code generated by clickhouseanalyzer; DO NOT EDIT.
"""Service endpoints observed in trace data."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class ServiceEndpoint:
    """One observed outbound call from a service."""

    service_name: str
    request_method: str
    response_status: str
    route: str
    server_address: str
    server_port: str


'''

_ENDPOINTS_FOOTER = '''

SERVICE_ENDPOINTS: dict[str, tuple[ServiceEndpoint, ...]] = {
    service: tuple(ServiceEndpoint(*row) for row in rows) for service, rows in _ROWS.items()
}


def get_endpoints_by_service(service_name: str) -> list[ServiceEndpoint]:
    """Return all endpoints for a service, or an empty list if unknown."""
    return list(SERVICE_ENDPOINTS.get(service_name, ()))


def get_all_services() -> list[str]:
    """Return the names of all services with endpoints."""
    return list(SERVICE_ENDPOINTS)
'''

_OPERATIONS_PREAMBLE = '''# Code generated by clickhouseanalyzer; DO NOT EDIT.
"""Database operations observed in trace data."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class DatabaseOperation:
    """One database operation performed by a service."""

    service_name: str
    db_name: str
    db_table: str
    operation: str


'''

_OPERATIONS_FOOTER = '''

DATABASE_OPERATIONS: dict[str, tuple[DatabaseOperation, ...]] = {
    service: tuple(DatabaseOperation(*row) for row in rows) for service, rows in _ROWS.items()
}


def get_operations_by_service(service_name: str) -> list[DatabaseOperation]:
    """Return all database operations of a service, or an empty list if unknown."""
    return list(DATABASE_OPERATIONS.get(service_name, ()))


def get_all_database_services() -> list[str]:
    """Return the names of all services that perform database operations."""
    return list(DATABASE_OPERATIONS)


def get_operations_by_database(db_name: str) -> list[DatabaseOperation]:
    """Return all operations on a given database."""
    return [op for ops in DATABASE_OPERATIONS.values() for op in ops if op.db_name == db_name]


def get_operations_by_table(db_table: str) -> list[DatabaseOperation]:
    """Return all operations on a given table."""
    return [op for ops in DATABASE_OPERATIONS.values() for op in ops if op.db_table == db_table]
'''


@dataclass
class ServiceEndpoints:
    """The endpoints called by one service."""

    service_name: str
    endpoints: list[ServiceEndpoint] = field(default_factory=list)


@dataclass
class DatabaseOperationsByService:
    """The database operations performed by one service."""

    service_name: str
    operations: list[DatabaseOperation] = field(default_factory=list)


def group_endpoints_by_service(endpoints: Iterable[ServiceEndpoint]) -> list[ServiceEndpoints]:
    """Group endpoints by service name, in order of first appearance."""
    groups: dict[str, ServiceEndpoints] = {}
    for endpoint in endpoints:
        name = endpoint.service_name
        groups.setdefault(name, ServiceEndpoints(name)).endpoints.append(endpoint)
    return list(groups.values())


def group_operations_by_service(
    operations: Iterable[DatabaseOperation],
) -> list[DatabaseOperationsByService]:
    """Group database operations by service name, in order of first appearance."""
    groups: dict[str, DatabaseOperationsByService] = {}
    for operation in operations:
        name = operation.service_name
        groups.setdefault(name, DatabaseOperationsByService(name)).operations.append(operation)
    return list(groups.values())


def _format_rows(groups: Iterable[tuple[str, Sequence[tuple[str, ...]]]]) -> str:
    lines = ["_ROWS: dict[str, list[tuple[str, ...]]] = {"]
    for name, rows in groups:
        lines.append(f"    {name!r}: [")
        lines.extend(f"        {row!r}," for row in rows)
        lines.append("    ],")
    lines.append("}")
    return "\n".join(lines) + "\n"


def render_service_endpoints(endpoints: Iterable[ServiceEndpoint]) -> str:
    """Return the source of a data module holding the given endpoints."""
    groups = group_endpoints_by_service(endpoints)
    rows = _format_rows((g.service_name, [astuple(e) for e in g.endpoints]) for g in groups)
    return _ENDPOINTS_PREAMBLE + rows + _ENDPOINTS_FOOTER


def render_database_operations(operations: Iterable[DatabaseOperation]) -> str:
    """Return the source of a data module holding the given database operations."""
    groups = group_operations_by_service(operations)
    rows = _format_rows((g.service_name, [astuple(o) for o in g.operations]) for g in groups)
    return _OPERATIONS_PREAMBLE + rows + _OPERATIONS_FOOTER


def _write(text: str, output_file_path: PathLike) -> None:
    path = Path(output_file_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")


def generate_service_endpoints_file(
    endpoints: Iterable[ServiceEndpoint], output_file_path: PathLike
) -> None:
    """Write the endpoints data module, creating parent directories as needed."""
    _write(render_service_endpoints(endpoints), output_file_path)


def generate_database_operations_file(
    operations: Iterable[DatabaseOperation], output_file_path: PathLike
) -> None:
    """Write the database operations data module, creating parent directories as needed."""
    _write(render_database_operations(operations), output_file_path)