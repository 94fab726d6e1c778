"""Run the external Java method extractor over service source trees."""

from __future__ import annotations

import contextlib
import json
import os
import subprocess
import tempfile
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Union

PathLike = Union[str, "os.PathLike[str]"]

DEFAULT_JAR_PATH = "tools/javaanalyzer/method-extractor.jar"


class JavaAnalyzerError(Exception):
    """Raised when the Java analyzer cannot be run or its output cannot be read."""


@dataclass(frozen=True)
class ClassMethodEntry:
    """A class and one of its methods."""

    class_name: str
    method_name: str

    @classmethod
    def from_dict(cls, data: Any) -> ClassMethodEntry:
        if not isinstance(data, dict):
            raise JavaAnalyzerError(f"error parsing JSON: expected an object, got {data!r}")
        return cls(str(data.get("className", "")), str(data.get("methodName", "")))

    def to_dict(self) -> dict[str, str]:
        return {"className": self.class_name, "methodName": self.method_name}


@dataclass
class PathResult:
    """The methods found under one analyzed path."""

    path_name: str
    methods: list[ClassMethodEntry] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {"pathName": self.path_name, "methods": [m.to_dict() for m in self.methods]}


def _parse_entries(text: str) -> list[ClassMethodEntry]:
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise JavaAnalyzerError(f"error parsing JSON: {exc}") from exc
    if data is None:
        return []
    if not isinstance(data, list):
        raise JavaAnalyzerError("error parsing JSON: expected a list of entries")
    return [ClassMethodEntry.from_dict(item) for item in data]


def analyze_java_path(source_path: PathLike, jar_path: PathLike) -> list[ClassMethodEntry]:
    """Run the extractor on one source path and return the methods it found."""
    fd, output_name = tempfile.mkstemp(prefix="java-analysis-", suffix=".json")
    os.close(fd)
    try:
        try:
            subprocess.run(
                ["java", "-jar", str(jar_path), str(source_path), output_name],
                check=True,
            )
        except (subprocess.CalledProcessError, OSError) as exc:
            raise JavaAnalyzerError(f"error running Java analyzer: {exc}") from exc
        try:
            text = Path(output_name).read_text(encoding="utf-8")
        except OSError as exc:
            raise JavaAnalyzerError(f"error reading output file: {exc}") from exc
        return _parse_entries(text)
    finally:
        with contextlib.suppress(FileNotFoundError):
            os.remove(output_name)


def analyze_java_paths(
    source_paths: Iterable[PathLike], jar_path: PathLike = DEFAULT_JAR_PATH
) -> list[PathResult]:
    """Analyze several source paths, naming each result after the path's last component."""
    if not os.path.exists(jar_path):
        raise JavaAnalyzerError(
            f"analyzer JAR not found at {jar_path}, please build with 'mvn package'"
        )
    results = []
    for path in source_paths:
        if not str(path):
            continue
        try:
            entries = analyze_java_path(path, jar_path)
        except JavaAnalyzerError as exc:
            raise JavaAnalyzerError(f"error analyzing path {path}: {exc}") from exc
        results.append(PathResult(Path(path).name, entries))
    return results


def save_results_to_file(results: Sequence[PathResult], output_file: PathLike) -> None:
    """Write the analysis results as indented JSON, creating parent directories."""
    path = Path(output_file)
    path.parent.mkdir(parents=True, exist_ok=True)
    text = json.dumps([r.to_dict() for r in results], indent=2, ensure_ascii=False)
    path.write_text(text, encoding="utf-8")