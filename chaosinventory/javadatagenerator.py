"""Render the class-method inventory of the Java services as a data module."""

from __future__ import annotations

import os
from collections.abc import Iterable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Union

from .javaanalyzer import (
    DEFAULT_JAR_PATH,
    ClassMethodEntry,
    JavaAnalyzerError,
    analyze_java_paths,
)

PathLike = Union[str, "os.PathLike[str]"]

SERVICE_DIRS: tuple[str, ...] = (
    "ts-admin-basic-info-service", "ts-auth-service", "ts-consign-service",
    "ts-gateway-service", "ts-preserve-other-service", "ts-seat-service",
    "ts-travel2-service", "ts-admin-order-service", "ts-basic-service",
    "ts-contacts-service", "ts-inside-payment-service", "ts-preserve-service",
    "ts-security-service", "ts-travel-plan-service", "ts-admin-route-service",
    "ts-cancel-service", "ts-delivery-service", "ts-notification-service",
    "ts-price-service", "ts-station-food-service", "ts-travel-service",
    "ts-admin-travel-service", "ts-common", "ts-execute-service",
    "ts-order-other-service", "ts-rebook-service", "ts-station-service",
    "ts-user-service", "ts-admin-user-service", "ts-config-service",
    "ts-food-delivery-service", "ts-order-service", "ts-route-plan-service",
    "ts-train-food-service", "ts-verification-code-service", "ts-assurance-service",
    "ts-consign-price-service", "ts-food-service", "ts-payment-service",
    "ts-route-service", "ts-train-service", "ts-wait-order-service",
)

_PREAMBLE = '''# Code generated by javadatagenerator; DO NOT EDIT.
"""Class-method pairs found in the Java services."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class ClassMethodEntry:
    """A class and one of its methods."""

    class_name: str
    method_name: str


'''

_FOOTER = '''

SERVICE_CLASS_METHODS: dict[str, tuple[ClassMethodEntry, ...]] = {
    service: tuple(ClassMethodEntry(*row) for row in rows) for service, rows in _ROWS.items()
}


def get_class_methods_by_service(service_name: str) -> list[ClassMethodEntry]:
    """Return all class-method pairs of a service, or an empty list if unknown."""
    return list(SERVICE_CLASS_METHODS.get(service_name, ()))


def get_all_services() -> list[str]:
    """Return the names of all services with class-method pairs."""
    return list(SERVICE_CLASS_METHODS)
'''


@dataclass
class ServiceClassMethods:
    """The class-method pairs of one service."""

    service_name: str
    methods: list[ClassMethodEntry] = field(default_factory=list)


def existing_service_paths(services_base_path: PathLike) -> list[str]:
    """Return the paths of the known service directories present under a base path."""
    base = Path(services_base_path)
    return [str(base / name) for name in SERVICE_DIRS if os.path.exists(base / name)]


def render_java_class_methods(services: Iterable[ServiceClassMethods]) -> str:
    """Return the source of a data module holding the given class-method pairs."""
    lines = ["_ROWS: dict[str, list[tuple[str, ...]]] = {"]
    for service in services:
        lines.append(f"    {service.service_name!r}: [")
        lines.extend(f"        {(m.class_name, m.method_name)!r}," for m in service.methods)
        lines.append("    ],")
    lines.append("}")
    return _PREAMBLE + "\n".join(lines) + "\n" + _FOOTER


def generate_java_class_methods_file(
    services_base_path: PathLike,
    output_file_path: PathLike,
    jar_path: PathLike = DEFAULT_JAR_PATH,
) -> None:
    """Analyze the Java services under a base path and write their class-method module."""
    paths = existing_service_paths(services_base_path)
    try:
        results = analyze_java_paths(paths, jar_path)
    except JavaAnalyzerError as exc:
        raise JavaAnalyzerError(f"failed to analyze Java services: {exc}") from exc
    services = [ServiceClassMethods(r.path_name, list(r.methods)) for r in results]
    output = Path(output_file_path)
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(render_java_class_methods(services), encoding="utf-8")