"""Extract service endpoints and database operations from ClickHouse trace data."""

from __future__ import annotations

import json
import urllib.error
import urllib.parse
import urllib.request
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from typing import Any, Optional, Protocol

from .serviceendpoints import ServiceEndpoint

RABBITMQ_ADDRESS = "ts-rabbitmq"
RABBITMQ_PORT = "5672"
SERVICE_PORT = "8080"

PING_TIMEOUT = 5.0
QUERY_TIMEOUT = 30.0

_VIEW = "otel_traces_mv"
_UUID = "[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}"
_URL_PATH = r"https?://[^/]+(/.*)"
_ROUTE_PARAM = r"/\{[^}]+\}"
_TWO_SEGMENTS = r"[^/]+/[^/]+"

# Attributes copied verbatim into the view; the column name is the key with dots as underscores.
_LEADING_ATTRIBUTES = (
    "client.address",
    "http.request.method",
    "http.response.status_code",
    "http.route",
    "http.method",
    "url.full",
    "http.status_code",
    "http.target",
)
_TRAILING_ATTRIBUTES = (
    "server.address",
    "server.port",
    "db.connection_string",
    "db.name",
    "db.operation",
    "db.sql.table",
    "db.statement",
    "db.system",
    "db.user",
)

_SORT_KEY = (
    "masked_route",
    "ServiceName",
    "db_sql_table",
    "SpanKind",
    "request_method",
    "response_status_code",
    "server_address",
    "server_port",
    "db_name",
    "db_operation",
)
_PRIMARY_KEY_LENGTH = 3

# http.target prefixes and the wildcard suffix that replaces whatever follows them.
_TARGET_TEMPLATES = (
    ("/api/v1/verifycode/verify/", "*"),
    ("/api/v1/cancelservice/cancel/refound/", "*"),
    ("/api/v1/cancelservice/cancel/", "*/*"),
    ("/api/v1/consignservice/consigns/account/", "*"),
    ("/api/v1/consignservice/consigns/order/", "*"),
    ("/api/v1/contactservice/contacts/account/", "*"),
    ("/api/v1/foodservice/foods/", "*/*/*"),
    ("/api/v1/executeservice/execute/collected/", "*"),
    ("/api/v1/executeservice/execute/execute/", "*"),
    ("/api/v1/userservice/users/id/", "*"),
)

# Shapes of path masking: text kept inside the prefix group, the masked tail, the replacement.
_SHAPES: dict[str, tuple[str, str, str]] = {
    "one": ("", r"[^/]+", r"\1*"),
    "two": ("", _TWO_SEGMENTS, r"\1*/*"),
    "last": ("", r"[^/]+$", r"\1*"),
    "second": (r"[^/]+/", r"[^/]+", r"\1*"),
    "keep_rest": ("", r"[^/]+(/.*)", r"\1*\2"),
    "keep_next": ("", r"[^/]+(/[^/]+)", r"\1*\2"),
}


@dataclass(frozen=True)
class _PathRule:
    prefix: str
    shape: str
    nested: Optional[bool] = None


# Evaluated in order; the first rule whose prefix (and nesting test) matches wins.
_PATH_RULES = (
    _PathRule("/api/v1/assuranceservice/assurances/", "second"),
    _PathRule("/api/v1/consignpriceservice/consignprice/", "two"),
    _PathRule("/api/v1/contactservice/contacts/", "one"),
    _PathRule("/api/v1/inside_pay_service/inside_payment/drawback/", "two"),
    _PathRule("/api/v1/securityservice/securityConfigs/", "one"),
    _PathRule("/api/v1/travel2service/routes/", "one"),
    _PathRule("/api/v1/routeservice/routes/", "two", nested=True),
    _PathRule("/api/v1/orderservice/order/status/", "keep_rest"),
    _PathRule("/api/v1/orderservice/order/security/", "two"),
    _PathRule("/api/v1/orderservice/order/", "last"),
    _PathRule("/api/v1/travelservice/routes/", "last"),
    _PathRule("/api/v1/trainfoodservice/trainfoods/", "last"),
    _PathRule("/api/v1/trainservice/trains/byName/", "last"),
    _PathRule("/api/v1/stationservice/stations/id/", "last"),
    _PathRule("/api/v1/orderOtherService/orderOther/status/", "keep_rest"),
    _PathRule("/api/v1/orderOtherService/orderOther/security/", "two"),
    _PathRule("/api/v1/orderOtherService/orderOther/", "last"),
    _PathRule("/api/v1/routeservice/routes/", "last", nested=False),
    _PathRule("/api/v1/priceservice/prices/", "keep_next"),
    _PathRule("/api/v1/verifycode/verify/", "one"),
    _PathRule("/api/v1/userservice/users/id/", "one"),
)


def _lit(text: str) -> str:
    escaped = text.replace("\\", "\\\\").replace("'", "\\'")
    return f"'{escaped}'"


def _attr(key: str) -> str:
    return f"SpanAttributes[{_lit(key)}]"


def _present(expr: str) -> str:
    return f"{expr} IS NOT NULL AND {expr} != ''"


def _column(key: str) -> str:
    return key.replace(".", "_")


def _case(branches: Iterable[tuple[str, str]], default: str) -> str:
    parts = ["CASE"]
    parts.extend(f"WHEN {condition} THEN {value}" for condition, value in branches)
    parts.append(f"ELSE {default}")
    parts.append("END")
    return "\n".join(parts)


def _first_present(keys: Sequence[str], alias: str) -> str:
    return _case(((_present(_attr(k)), _attr(k)) for k in keys), "''") + f" AS {alias}"


def _target_case() -> str:
    target = _attr("http.target")
    branches = [
        (f"position({target}, {_lit(prefix)}) = 1", _lit(prefix + suffix))
        for prefix, suffix in _TARGET_TEMPLATES
    ]
    uuid_pattern = _lit("/([^/]+/[^/]+/[^/]+/)(" + _UUID + ")")
    uuid_replacement = _lit(r"/\1*")
    branches.append(
        (
            f"match({target}, {_lit('/' + _UUID)})",
            f"replaceRegexpAll({target}, {uuid_pattern}, {uuid_replacement})",
        )
    )
    return _case(branches, target)


def _path_case() -> str:
    branches = []
    for rule in _PATH_RULES:
        condition = f"position(path, {_lit(rule.prefix)}) = 1"
        if rule.nested is not None:
            nested = f"match(path, {_lit(rule.prefix + _TWO_SEGMENTS)})"
            condition += f" AND {nested}" if rule.nested else f" AND NOT {nested}"
        head, tail, replacement = _SHAPES[rule.shape]
        pattern = "(" + rule.prefix + head + ")" + tail
        branches.append(
            (condition, f"replaceRegexpAll(path, {_lit(pattern)}, {_lit(replacement)})")
        )
    return _case(branches, "path")


def _masked_route() -> str:
    route, target, url = _attr("http.route"), _attr("http.target"), _attr("url.full")
    url_case = _case([(f"match({url}, {_lit(_URL_PATH)})", _path_case())], url)
    return (
        _case(
            [
                (_present(route), f"replaceRegexpAll({route}, {_lit(_ROUTE_PARAM)}, '/*')"),
                (_present(target), _target_case()),
                (_present(url), url_case),
            ],
            "''",
        )
        + " AS masked_route"
    )


def _build_view_sql() -> str:
    columns = [
        "ResourceAttributes['service.name'] AS ServiceName",
        f"{2**32 - 1} - toUnixTimestamp(Timestamp) AS version",
        "Timestamp",
        "SpanKind",
        *(f"{_attr(k)} AS {_column(k)}" for k in _LEADING_ATTRIBUTES),
        _first_present(("http.request.method", "http.method"), "request_method"),
        _first_present(("http.response.status_code", "http.status_code"), "response_status_code"),
        _masked_route(),
        *(f"{_attr(k)} AS {_column(k)}" for k in _TRAILING_ATTRIBUTES),
    ]
    path_expr = f"replaceRegexpOne({_attr('url.full')}, {_lit(_URL_PATH)}, {_lit(chr(92) + '1')})"
    non_empty = "(k IS NOT NULL AND k != '') AND (v IS NOT NULL AND v != '')"
    return "\n".join(
        [
            f"CREATE MATERIALIZED VIEW IF NOT EXISTS {_VIEW}",
            "ENGINE = ReplacingMergeTree(version)",
            "PARTITION BY toYYYYMM(Timestamp)",
            f"PRIMARY KEY ({', '.join(_SORT_KEY[:_PRIMARY_KEY_LENGTH])})",
            f"ORDER BY ({', '.join(_SORT_KEY)})",
            "SETTINGS allow_nullable_key = 1",
            "POPULATE",
            "AS",
            f"WITH {path_expr} AS path",
            "SELECT",
            ",\n".join(columns),
            "FROM otel_traces",
            "WHERE ResourceAttributes['service.namespace'] = 'ts'",
            "AND SpanKind IN ('Server', 'Client')",
            f"AND mapExists((k, v) -> {non_empty}, SpanAttributes);",
        ]
    )


def _view_select(columns: Sequence[str], where: str) -> str:
    return (
        f"SELECT {', '.join(columns)} FROM {_VIEW} FINAL "
        f"WHERE {where} ORDER BY version ASC"
    )


CREATE_MATERIALIZED_VIEW_SQL = _build_view_sql()

CLIENT_TRACES_QUERY = _view_select(
    (
        "ServiceName",
        "request_method",
        "response_status_code",
        "masked_route",
        "server_address",
        "server_port",
    ),
    "SpanKind = 'Client'",
)

DASHBOARD_ROUTES_QUERY = _view_select(
    ("ServiceName", "request_method", "response_status_code", "masked_route"),
    "ServiceName = 'ts-ui-dashboard'",
)

MYSQL_OPERATIONS_QUERY = _view_select(
    ("ServiceName", "db_name", "db_sql_table", "db_operation"),
    "db_system = 'mysql'",
)

# Gateway route prefixes and the service that serves each of them.
_ROUTE_PREFIX_SERVICES = {
    "adminbasicservice": "ts-admin-basic-info-service",
    "adminorderservice": "ts-admin-order-service",
    "adminrouteservice": "ts-admin-route-service",
    "admintravelservice": "ts-admin-travel-service",
    "adminuserservice/users": "ts-admin-user-service",
    "assuranceservice": "ts-assurance-service",
    "auth": "ts-auth-service",
    "users": "ts-auth-service",
    "avatar": "ts-avatar-service",
    "basicservice": "ts-basic-service",
    "cancelservice": "ts-cancel-service",
    "configservice": "ts-config-service",
    "consignpriceservice": "ts-consign-price-service",
    "consignservice": "ts-consign-service",
    "contactservice": "ts-contacts-service",
    "executeservice": "ts-execute-service",
    "foodservice": "ts-food-service",
    "inside_pay_service": "ts-inside-payment-service",
    "notifyservice": "ts-notification-service",
    "orderOtherService": "ts-order-other-service",
    "orderservice": "ts-order-service",
    "paymentservice": "ts-payment-service",
    "preserveotherservice": "ts-preserve-other-service",
    "preserveservice": "ts-preserve-service",
    "priceservice": "ts-price-service",
    "rebookservice": "ts-rebook-service",
    "routeplanservice": "ts-route-plan-service",
    "routeservice": "ts-route-service",
    "seatservice": "ts-seat-service",
    "securityservice": "ts-security-service",
    "stationfoodservice": "ts-station-food-service",
    "stationservice": "ts-station-service",
    "trainfoodservice": "ts-train-food-service",
    "trainservice": "ts-train-service",
    "travel2service": "ts-travel2-service",
    "travelplanservice": "ts-travel-plan-service",
    "travelservice": "ts-travel-service",
    "userservice/users": "ts-user-service",
    "verifycode": "ts-verification-code-service",
    "waitorderservice": "ts-wait-order-service",
    "fooddeliveryservice": "ts-food-delivery-service",
}

ROUTE_SERVICES: dict[str, tuple[str, str]] = {
    f"/api/v1/{suffix}": (service, SERVICE_PORT)
    for suffix, service in _ROUTE_PREFIX_SERVICES.items()
}


class ClickHouseError(Exception):
    """Raised when talking to ClickHouse or reading its results fails."""


@dataclass(frozen=True)
class ClickHouseConfig:
    """Connection parameters for the ClickHouse HTTP interface."""

    host: str = "localhost"
    port: int = 8123
    database: str = "default"
    username: str = "default"
    password: str = ""


@dataclass(frozen=True)
class DatabaseOperation:
    """One database operation observed in a service's traces."""

    service_name: str
    db_name: str
    db_table: str
    operation: str


class Database(Protocol):
    def execute(self, sql: str) -> None: ...

    def query(self, sql: str) -> list[list[Any]]: ...


class ClickHouseClient:
    """Minimal client for the ClickHouse HTTP interface."""

    def __init__(self, config: ClickHouseConfig, *, timeout: float = QUERY_TIMEOUT) -> None:
        self.config = config
        self.timeout = timeout

    @property
    def base_url(self) -> str:
        return f"http://{self.config.host}:{self.config.port}"

    def _request(
        self,
        path: str,
        *,
        body: bytes | None = None,
        params: dict[str, str] | None = None,
        timeout: float,
    ) -> bytes:
        url = self.base_url + path
        if params:
            url += "?" + urllib.parse.urlencode(params)
        request = urllib.request.Request(url, data=body, method="POST" if body is not None else "GET")
        request.add_header("X-ClickHouse-User", self.config.username)
        request.add_header("X-ClickHouse-Key", self.config.password)
        try:
            with urllib.request.urlopen(request, timeout=timeout) as response:
                return response.read()
        except urllib.error.HTTPError as exc:
            detail = exc.read().decode("utf-8", "replace").strip()
            raise ClickHouseError(f"HTTP {exc.code}: {detail}") from exc
        except (urllib.error.URLError, OSError) as exc:
            raise ClickHouseError(str(exc)) from exc

    def ping(self) -> None:
        """Check that the server answers; raise ClickHouseError otherwise."""
        reply = self._request("/ping", timeout=PING_TIMEOUT)
        if reply.strip() != b"Ok.":
            raise ClickHouseError(f"unexpected ping reply: {reply!r}")

    def execute(self, sql: str) -> None:
        """Run a statement, discarding any output."""
        self._request(
            "/",
            body=sql.encode("utf-8"),
            params={"database": self.config.database},
            timeout=self.timeout,
        )

    def query(self, sql: str) -> list[list[Any]]:
        """Run a query and return its rows as lists of column values."""
        raw = self._request(
            "/",
            body=sql.encode("utf-8"),
            params={"database": self.config.database, "default_format": "JSONCompactEachRow"},
            timeout=self.timeout,
        )
        try:
            return [json.loads(line) for line in raw.decode("utf-8").splitlines() if line.strip()]
        except (UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise ClickHouseError(f"malformed result: {exc}") from exc


def connect_to_db(config: ClickHouseConfig) -> ClickHouseClient:
    """Return a client for the configured server after checking it is reachable."""
    client = ClickHouseClient(config)
    try:
        client.ping()
    except ClickHouseError as exc:
        raise ClickHouseError(f"error pinging database: {exc}") from exc
    return client


def create_materialized_view(db: Database) -> None:
    """Create the trace materialized view if it does not exist yet."""
    try:
        db.execute(CREATE_MATERIALIZED_VIEW_SQL)
    except ClickHouseError as exc:
        raise ClickHouseError(f"error creating materialized view: {exc}") from exc


def _scan(row: Sequence[Any], nullable: Sequence[bool]) -> list[str]:
    values = list(row)
    if len(values) != len(nullable):
        raise ClickHouseError(
            f"error scanning row: expected {len(nullable)} columns, got {len(values)}"
        )
    scanned = []
    for value, can_be_null in zip(values, nullable):
        if value is None:
            if not can_be_null:
                raise ClickHouseError("error scanning row: unexpected NULL")
            scanned.append("")
        else:
            scanned.append(str(value))
    return scanned


def _run_query(db: Database, sql: str, what: str) -> list[list[Any]]:
    try:
        return db.query(sql)
    except ClickHouseError as exc:
        raise ClickHouseError(f"error querying {what}: {exc}") from exc


def query_client_traces(db: Database) -> list[ServiceEndpoint]:
    """Return the outbound calls seen in client spans."""
    results = []
    for row in _run_query(db, CLIENT_TRACES_QUERY, "client traces"):
        service, method, status, route, address, port = _scan(
            row, (False, False, False, False, True, True)
        )
        if not address and not port:
            address, port = RABBITMQ_ADDRESS, RABBITMQ_PORT
        results.append(ServiceEndpoint(service, method, status, route, address, port))
    return results


def query_dashboard_routes(db: Database) -> list[ServiceEndpoint]:
    """Return the routes served through the UI dashboard, mapped to their backends."""
    results = []
    for row in _run_query(db, DASHBOARD_ROUTES_QUERY, "dashboard routes"):
        service, method, status, route = _scan(row, (False, False, False, False))
        address, port = map_route_to_service(route)
        results.append(ServiceEndpoint(service, method, status, route, address, port))
    return results


def query_mysql_operations(db: Database) -> list[DatabaseOperation]:
    """Return the MySQL operations seen in the traces."""
    return [
        DatabaseOperation(*_scan(row, (False, True, True, True)))
        for row in _run_query(db, MYSQL_OPERATIONS_QUERY, "MySQL operations")
    ]


def map_route_to_service(route: str) -> tuple[str, str]:
    """Return the (address, port) serving a route by its longest known prefix.

    Routes that match no prefix, and empty routes, go to the message queue.
    """
    if not route:
        return RABBITMQ_ADDRESS, RABBITMQ_PORT
    matches = [prefix for prefix in ROUTE_SERVICES if route.startswith(prefix)]
    if not matches:
        return RABBITMQ_ADDRESS, RABBITMQ_PORT
    return ROUTE_SERVICES[max(matches, key=len)]