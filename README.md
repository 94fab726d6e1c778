# chaosinventory

A catalogue of the targets available for fault injection in a
microservice deployment: which services call which, over which HTTP
routes, which databases and tables they touch, and which Java methods
they expose. The catalogue of endpoints ships with the package. Fresh
data can be pulled from trace data stored in ClickHouse and from static
analysis of the services' Java sources, and written out as Python data
modules.

The package has no dependencies outside the standard library.

## Install

```
pip install .
```

Run the tests with:

```
pip install ".[test]"
pytest
```

## Querying the built-in inventory

`chaosinventory.serviceendpoints` holds `SERVICE_ENDPOINTS`, a mapping
from service name to the `ServiceEndpoint` records of its outbound calls.
`chaosinventory.networkdependencies` builds a dependency graph from it.

```python
from chaosinventory.serviceendpoints import get_all_services, get_endpoints_by_service
from chaosinventory.networkdependencies import (
    count_dependencies,
    get_all_service_pairs,
    get_dependencies_for_service,
    get_service_pair,
    get_service_pair_by_service_and_index,
    list_all_service_names,
)

for endpoint in get_endpoints_by_service("ts-travel-service"):
    print(endpoint.request_method, endpoint.route, "->", endpoint.server_address)

print(get_dependencies_for_service("ts-auth-service"))
target = get_service_pair_by_service_and_index("ts-auth-service", 0)
pair = get_service_pair(0)  # (source, target) or None
```

An unknown service gives an empty list; a lookup by index that is out of
range returns `None` instead of raising.

`DependencyGraph` can also be built from your own data with
`DependencyGraph.from_endpoints(mapping)`, where the mapping goes from a
service name to objects with a `server_address`. Every dependency is
recorded in both directions, duplicates are dropped, and a service never
depends on itself. `add_dependency`, `dependencies_for`,
`all_service_pairs`, `service_pair`, `service_pair_by_service_and_index`,
`count_dependencies` and `service_names` work on any graph;
`default_graph()` returns the one built from the shipped endpoints.

## Flattened, sorted views

`chaosinventory.resourcelookup.ResourceLookup` gives sorted, cached lists
of every target kind:

- `http_endpoints()` — `AppEndpointPair` for each routed call, leaving
  out calls to `ts-rabbitmq`;
- `network_pairs()` — `AppNetworkPair` for each edge of the dependency graph;
- `dns_endpoints()` — `AppDNSPair` for each distinct non-empty address a
  service calls, other than itself;
- `jvm_methods()` — `AppMethodPair` entries;
- `database_operations()` — `AppDatabasePair` entries;
- `app_labels(namespace, key)` and `containers(namespace)` — cluster data,
  cached per namespace prefix;
- `containers_by_service`, `pods_by_service` and
  `containers_and_pods_by_services` — filters over `containers`.

Its keyword-only constructor arguments supply the data:

- `label_fetcher(namespace, key)` returns the app labels of a namespace;
- `container_fetcher(namespace)` returns mappings with `podName`,
  `appLabel` and `containerName` keys;
- `class_methods` maps a service to objects with `class_name` and
  `method_name` (empty by default);
- `database_operations` maps a service to objects with `db_name`,
  `db_table` and `operation` (empty by default);
- `endpoints` defaults to the shipped `SERVICE_ENDPOINTS`;
- `dependency_graph` defaults to `default_graph()`.

Calling `app_labels` or `containers` without the matching fetcher raises
`RuntimeError`. Namespaces must look like `ts0` or `ts12`, a letter prefix
followed by digits (see `naming.extract_ns_prefix`, which raises
`ValueError` otherwise). `preload(namespace, label_key)` fills every
cache concurrently and raises `PreloadError`, whose `errors` lists every
failure, if any part fails. `invalidate()` clears them.

`naming.to_snake_case` turns `CamelCase` identifiers into `camel_case`.

## Refreshing the inventory from traces

Trace data comes from ClickHouse over its HTTP interface (port 8123 by
default). `create_materialized_view` sets up the `otel_traces_mv` view over
`otel_traces` that the queries read from.

```python
from chaosinventory.clickhouse import (
    ClickHouseConfig, connect_to_db, create_materialized_view,
    query_client_traces, query_dashboard_routes, query_mysql_operations,
)
from chaosinventory.datagenerator import (
    generate_service_endpoints_file, generate_database_operations_file,
)

password = "password"
db = connect_to_db(ClickHouseConfig(host="localhost", port=8123,
                                    database="default", username="user",
                                    password=password))
create_materialized_view(db)
endpoints = query_client_traces(db) + query_dashboard_routes(db)
generate_service_endpoints_file(endpoints, "out/serviceendpoints.py")
generate_database_operations_file(query_mysql_operations(db), "out/databaseoperations.py")
```

`connect_to_db` pings the server first; every failure is raised as
`ClickHouseError`. Client calls with neither address nor port are
attributed to `ts-rabbitmq:5672`. Dashboard routes are assigned to a
backend by `map_route_to_service(route)`, which picks the longest known
gateway prefix and falls back to `ts-rabbitmq`.

The `query_*` and `create_materialized_view` functions accept any object
with `execute(sql)` and `query(sql)` methods, so they can be driven by
something other than `ClickHouseClient`.

`render_service_endpoints` and `render_database_operations` return the
generated module source as a string instead of writing it;
`group_endpoints_by_service` and `group_operations_by_service` group
records by service in order of first appearance.

## Java class and method inventory

Method lists come from an external method-extractor jar, run as
`java -jar <jar> <source path> <output file>`; `java` must be on the
`PATH`.

```python
from chaosinventory.javaanalyzer import analyze_java_paths, save_results_to_file
from chaosinventory.javadatagenerator import generate_java_class_methods_file

results = analyze_java_paths(["path/to/services/ts-auth-service"],
                             "tools/method-extractor.jar")
save_results_to_file(results, "out/methods.json")

generate_java_class_methods_file("path/to/services", "out/javaclassmethods.py",
                                 "tools/method-extractor.jar")
```

Without a jar path, `tools/javaanalyzer/method-extractor.jar` is used. A
missing jar, a failing run or unreadable output raises `JavaAnalyzerError`.
`generate_java_class_methods_file` analyses only the known service
directories found under the base path (see `existing_service_paths`);
`render_java_class_methods` returns the module source as a string.

## What this package does not do

- It does not talk to Kubernetes. Labels and containers come only from
  the `label_fetcher` and `container_fetcher` you pass to
  `ResourceLookup`.
- It ships no Java method or database-operation inventory. Pass them to
  `ResourceLookup` yourself, for example from modules written by the
  generators above.
- It has no command-line interface; everything is called from Python.