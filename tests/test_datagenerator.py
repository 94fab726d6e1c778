import ast

from chaosinventory.clickhouse import DatabaseOperation
from chaosinventory.datagenerator import (
    generate_database_operations_file,
    generate_service_endpoints_file,
    group_endpoints_by_service,
    group_operations_by_service,
    render_database_operations,
    render_service_endpoints,
)
from chaosinventory.serviceendpoints import ServiceEndpoint

ENDPOINTS = [
    ServiceEndpoint("ts-auth-service", "", "", "", "mysql", "3306"),
    ServiceEndpoint(
        "ts-ui-dashboard", "POST", "200", "/api/v1/users/login", "ts-auth-service", "8080"
    ),
    ServiceEndpoint(
        "ts-auth-service",
        "GET",
        "200",
        "/api/v1/verifycode/verify/*",
        "ts-verification-code-service",
        "8080",
    ),
]

OPERATIONS = [
    DatabaseOperation("ts-order-service", "ts", "orders", "SELECT"),
    DatabaseOperation("ts-user-service", "ts", "user", "INSERT"),
    DatabaseOperation("ts-order-service", "ts", "orders", "UPDATE"),
]


def _rows(source):
    tree = ast.parse(source)
    for node in tree.body:
        if (
            isinstance(node, ast.AnnAssign)
            and isinstance(node.target, ast.Name)
            and node.target.id == "_ROWS"
        ):
            return ast.literal_eval(node.value)
    raise AssertionError("generated source has no _ROWS")


def _function_names(source):
    return {n.name for n in ast.parse(source).body if isinstance(n, ast.FunctionDef)}


def test_group_endpoints_keeps_first_seen_order():
    groups = group_endpoints_by_service(ENDPOINTS)
    assert [g.service_name for g in groups] == ["ts-auth-service", "ts-ui-dashboard"]
    assert groups[0].endpoints == [ENDPOINTS[0], ENDPOINTS[2]]
    assert groups[1].endpoints == [ENDPOINTS[1]]


def test_group_operations_by_service():
    groups = group_operations_by_service(OPERATIONS)
    assert [g.service_name for g in groups] == ["ts-order-service", "ts-user-service"]
    assert groups[0].operations == [OPERATIONS[0], OPERATIONS[2]]


def test_group_empty_input():
    assert group_endpoints_by_service([]) == []
    assert group_operations_by_service([]) == []


def test_render_service_endpoints_round_trip():
    source = render_service_endpoints(ENDPOINTS)
    rows = _rows(source)
    assert rows == {
        "ts-auth-service": [
            ("ts-auth-service", "", "", "", "mysql", "3306"),
            (
                "ts-auth-service",
                "GET",
                "200",
                "/api/v1/verifycode/verify/*",
                "ts-verification-code-service",
                "8080",
            ),
        ],
        "ts-ui-dashboard": [
            ("ts-ui-dashboard", "POST", "200", "/api/v1/users/login", "ts-auth-service", "8080")
        ],
    }
    assert [ServiceEndpoint(*r) for rs in rows.values() for r in rs] == [
        ENDPOINTS[0],
        ENDPOINTS[2],
        ENDPOINTS[1],
    ]


def test_render_service_endpoints_header_and_functions():
    source = render_service_endpoints(ENDPOINTS)
    assert source.splitlines()[0] == "# Code generated by clickhouseanalyzer; DO NOT EDIT."
    assert {"get_endpoints_by_service", "get_all_services"} <= _function_names(source)


def test_render_quotes_awkward_strings():
    odd = ServiceEndpoint('svc"x', "GET", "200", "/a'b\\c", "host", "80")
    assert _rows(render_service_endpoints([odd])) == {
        'svc"x': [('svc"x', "GET", "200", "/a'b\\c", "host", "80")]
    }


def test_render_empty_endpoints():
    assert _rows(render_service_endpoints([])) == {}


def test_render_database_operations_round_trip():
    source = render_database_operations(OPERATIONS)
    rows = _rows(source)
    assert [DatabaseOperation(*r) for rs in rows.values() for r in rs] == [
        OPERATIONS[0],
        OPERATIONS[2],
        OPERATIONS[1],
    ]
    assert {
        "get_operations_by_service",
        "get_all_database_services",
        "get_operations_by_database",
        "get_operations_by_table",
    } <= _function_names(source)


def test_generate_service_endpoints_file_creates_directories(tmp_path):
    target = tmp_path / "nested" / "deeper" / "endpoints.py"
    generate_service_endpoints_file(ENDPOINTS, target)
    assert target.read_text(encoding="utf-8") == render_service_endpoints(ENDPOINTS)


def test_generate_database_operations_file(tmp_path):
    target = tmp_path / "out" / "operations.py"
    generate_database_operations_file(OPERATIONS, target)
    assert _rows(target.read_text(encoding="utf-8")) == _rows(
        render_database_operations(OPERATIONS)
    )