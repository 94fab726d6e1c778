import json
import os
import subprocess
from unittest import mock

import pytest

from chaosinventory.javaanalyzer import (
    ClassMethodEntry,
    JavaAnalyzerError,
    PathResult,
    analyze_java_path,
    analyze_java_paths,
    save_results_to_file,
)

ENTRIES_JSON = [
    {"className": "auth.AuthApplication", "methodName": "login"},
    {"className": "auth.AuthService", "methodName": "verifyCode"},
]


def _fake_run(payload, seen=None):
    def run(cmd, **kwargs):
        if seen is not None:
            seen.append(list(cmd))
        with open(cmd[4], "w", encoding="utf-8") as fh:
            fh.write(payload)
        return subprocess.CompletedProcess(cmd, 0)

    return run


def test_analyze_java_path_parses_output_and_cleans_up():
    seen = []
    with mock.patch(
        "chaosinventory.javaanalyzer.subprocess.run",
        side_effect=_fake_run(json.dumps(ENTRIES_JSON), seen),
    ):
        entries = analyze_java_path("services/ts-auth-service", "analyzer.jar")
    assert entries == [
        ClassMethodEntry("auth.AuthApplication", "login"),
        ClassMethodEntry("auth.AuthService", "verifyCode"),
    ]
    assert seen[0][:4] == ["java", "-jar", "analyzer.jar", "services/ts-auth-service"]
    assert not os.path.exists(seen[0][4])


def test_analyze_java_path_null_output_is_empty():
    with mock.patch("chaosinventory.javaanalyzer.subprocess.run", side_effect=_fake_run("null")):
        assert analyze_java_path("src", "analyzer.jar") == []


def test_analyze_java_path_malformed_json():
    with mock.patch("chaosinventory.javaanalyzer.subprocess.run", side_effect=_fake_run("{oops")):
        with pytest.raises(JavaAnalyzerError, match="error parsing JSON"):
            analyze_java_path("src", "analyzer.jar")


def test_analyze_java_path_process_failure():
    error = subprocess.CalledProcessError(1, ["java"])
    with mock.patch("chaosinventory.javaanalyzer.subprocess.run", side_effect=error):
        with pytest.raises(JavaAnalyzerError, match="error running Java analyzer"):
            analyze_java_path("src", "analyzer.jar")


def test_analyze_java_path_missing_java():
    with mock.patch(
        "chaosinventory.javaanalyzer.subprocess.run", side_effect=FileNotFoundError("java")
    ):
        with pytest.raises(JavaAnalyzerError, match="error running Java analyzer"):
            analyze_java_path("src", "analyzer.jar")


def test_analyze_java_paths_requires_jar(tmp_path):
    missing = tmp_path / "missing.jar"
    with pytest.raises(JavaAnalyzerError, match="analyzer JAR not found"):
        analyze_java_paths(["src"], missing)


def test_analyze_java_paths_skips_empty_and_names_by_basename(tmp_path):
    jar = tmp_path / "analyzer.jar"
    jar.write_bytes(b"")
    with mock.patch(
        "chaosinventory.javaanalyzer.subprocess.run",
        side_effect=_fake_run(json.dumps(ENTRIES_JSON[:1])),
    ):
        results = analyze_java_paths(["", "base/ts-auth-service/"], jar)
    assert results == [
        PathResult("ts-auth-service", [ClassMethodEntry("auth.AuthApplication", "login")])
    ]


def test_analyze_java_paths_wraps_errors(tmp_path):
    jar = tmp_path / "analyzer.jar"
    jar.write_bytes(b"")
    with mock.patch("chaosinventory.javaanalyzer.subprocess.run", side_effect=_fake_run("7")):
        with pytest.raises(JavaAnalyzerError, match="error analyzing path bad"):
            analyze_java_paths(["bad"], jar)


def test_save_results_round_trip(tmp_path):
    results = [
        PathResult(
            "ts-auth-service",
            [ClassMethodEntry.from_dict(e) for e in ENTRIES_JSON],
        )
    ]
    target = tmp_path / "nested" / "results.json"
    save_results_to_file(results, target)
    data = json.loads(target.read_text(encoding="utf-8"))
    assert data == [{"pathName": "ts-auth-service", "methods": ENTRIES_JSON}]
    assert target.read_text(encoding="utf-8").startswith("[\n  {")