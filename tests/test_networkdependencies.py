import pytest

from chaosinventory.networkdependencies import (
    CONNECTION_DETAILS,
    DependencyGraph,
    ServiceDependency,
    count_dependencies,
    default_graph,
    get_all_service_pairs,
    get_dependencies_for_service,
    get_service_pair,
    get_service_pair_by_service_and_index,
    list_all_service_names,
)
from chaosinventory.serviceendpoints import ServiceEndpoint

MOCK_DEPENDENCIES = {
    "ts-auth-service": ["ts-verification-code-service", "ts-ui-dashboard"],
    "ts-order-service": ["ts-payment-service"],
    "ts-travel-service": ["ts-route-service"],
}


@pytest.fixture
def mock_graph():
    graph = DependencyGraph()
    for source, targets in MOCK_DEPENDENCIES.items():
        for target in targets:
            graph.add_dependency(source, target)
    return graph


def _ep(service, address, port="8080", route="", method=""):
    return ServiceEndpoint(service, method, "200" if route else "", route, address, port)


@pytest.fixture
def mock_endpoints():
    return {
        "ts-auth-service": [
            _ep("ts-auth-service", "ts-verification-code-service", route="/api/v1/verifycode", method="POST"),
            _ep("ts-auth-service", "mysql", port="3306"),
        ],
        "ts-order-service": [
            _ep("ts-order-service", "mysql", port="3306"),
            _ep("ts-order-service", "ts-payment-service", route="/api/v1/payment", method="POST"),
        ],
        "ts-travel-service": [
            _ep("ts-travel-service", "ts-route-service", route="/api/v1/routeservice", method="GET"),
        ],
        "ts-ui-dashboard": [
            _ep("ts-ui-dashboard", "ts-auth-service", route="/api/v1/users/login", method="POST"),
            _ep("ts-ui-dashboard", "ts-travel-service", route="/api/v1/travel", method="GET"),
        ],
        "ts-self-service": [_ep("ts-self-service", "ts-self-service")],
    }


@pytest.mark.parametrize(
    "source, index, expected",
    [
        ("ts-auth-service", 0, "ts-verification-code-service"),
        ("ts-auth-service", -1, None),
        ("ts-auth-service", 100, None),
        ("non-existent-service", 0, None),
    ],
)
def test_select_network_target_for_service(mock_graph, source, index, expected):
    assert mock_graph.service_pair_by_service_and_index(source, index) == expected


def test_get_all_service_names(mock_graph):
    names = mock_graph.service_names()
    assert names
    for expected in ("ts-auth-service", "ts-order-service", "ts-travel-service"):
        assert expected in names


@pytest.mark.parametrize(
    "service, want_empty",
    [("ts-auth-service", False), ("non-existent-service", True)],
)
def test_get_dependencies_for_service(mock_graph, service, want_empty):
    assert (len(mock_graph.dependencies_for(service)) == 0) == want_empty


def test_get_all_service_pairs(mock_graph):
    pairs = mock_graph.all_service_pairs()
    assert pairs
    for pair in pairs:
        assert pair.source_service
        assert pair.target_service
        assert pair.connection_details
    assert any(
        p.source_service == "ts-auth-service" and p.target_service == "ts-verification-code-service"
        for p in pairs
    )


def test_network_helpers_integration(mock_graph):
    names = mock_graph.service_names()
    source = names[0]
    dependencies = mock_graph.dependencies_for(source)
    assert dependencies
    target = mock_graph.service_pair_by_service_and_index(source, 0)
    assert target == dependencies[0]
    assert ServiceDependency(source, target) in mock_graph.all_service_pairs()


def test_add_dependency_ignores_self_and_duplicates():
    graph = DependencyGraph()
    graph.add_dependency("ts-a", "ts-a")
    graph.add_dependency("ts-a", "ts-b")
    graph.add_dependency("ts-a", "ts-b")
    assert graph.dependencies_for("ts-a") == ["ts-b"]
    assert graph.service_names() == ["ts-a"]


def test_from_endpoints_is_bidirectional(mock_endpoints):
    graph = DependencyGraph.from_endpoints(mock_endpoints)
    assert set(graph.dependencies_for("ts-auth-service")) == {
        "ts-verification-code-service",
        "mysql",
        "ts-ui-dashboard",
    }
    assert set(graph.dependencies_for("mysql")) == {"ts-auth-service", "ts-order-service"}
    assert "ts-self-service" not in graph.service_names()


def test_service_pair_by_index(mock_graph):
    pairs = mock_graph.all_service_pairs()
    assert mock_graph.service_pair(0) == (pairs[0].source_service, pairs[0].target_service)
    assert mock_graph.service_pair(-1) is None
    assert mock_graph.service_pair(len(pairs)) is None


def test_count_dependencies(mock_graph):
    assert mock_graph.count_dependencies("ts-auth-service") == 2
    assert mock_graph.count_dependencies("non-existent-service") == 0


def test_dependencies_for_returns_copy(mock_graph):
    deps = mock_graph.dependencies_for("ts-order-service")
    deps.append("ts-extra")
    assert mock_graph.dependencies_for("ts-order-service") == ["ts-payment-service"]


def test_default_graph_known_service():
    deps = get_dependencies_for_service("ts-auth-service")
    assert "mysql" in deps
    assert "ts-verification-code-service" in deps
    assert "ts-ui-dashboard" in deps
    assert count_dependencies("ts-auth-service") == len(deps)


def test_default_graph_pairs_are_symmetric():
    pairs = {(p.source_service, p.target_service) for p in get_all_service_pairs()}
    assert pairs
    for source, target in pairs:
        assert (target, source) in pairs
        assert source != target
    assert all(p.connection_details == CONNECTION_DETAILS for p in get_all_service_pairs())


def test_default_graph_module_functions_agree():
    assert default_graph() is default_graph()
    names = list_all_service_names()
    assert "ts-ui-dashboard" in names
    first = get_service_pair(0)
    pair = get_all_service_pairs()[0]
    assert first == (pair.source_service, pair.target_service)
    assert get_service_pair(-1) is None
    assert get_service_pair_by_service_and_index("non-existent-service", 0) is None
    assert count_dependencies("non-existent-service") == 0