"""Known service-to-service endpoints of the train-ticket system."""

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


_MYSQL = ("", "", "", "mysql", "3306")


def _http(method: str, route: str, address: str) -> tuple[str, str, str, str, str]:
    return (method, "200", route, address, "8080")


_RAW_ENDPOINTS: dict[str, list[tuple[str, str, str, str, str]]] = {
    "ts-order-other-service": [_MYSQL],
    "ts-travel-plan-service": [
        _http("POST", "/api/v1/routeplanservice/routePlan/cheapestRoute", "ts-route-plan-service"),
        _http("POST", "/api/v1/routeplanservice/routePlan/quickestRoute", "ts-route-plan-service"),
        _http("GET", "/api/v1/trainservice/trains/byName/*", "ts-train-service"),
        _http("POST", "/api/v1/seatservice/seats/left_tickets", "ts-seat-service"),
        _http("POST", "/api/v1/routeplanservice/routePlan/minStopStations", "ts-route-plan-service"),
    ],
    "ts-travel-service": [
        _MYSQL,
        _http("POST", "/api/v1/basicservice/basic/travel", "ts-basic-service"),
        _http("POST", "/api/v1/basicservice/basic/travels", "ts-basic-service"),
        _http("POST", "/api/v1/seatservice/seats/left_tickets", "ts-seat-service"),
        _http("GET", "/api/v1/routeservice/routes/*", "ts-route-service"),
    ],
    "ts-route-service": [_MYSQL, _MYSQL, _MYSQL],
    "ts-travel2-service": [
        _http("POST", "/api/v1/basicservice/basic/travel", "ts-basic-service"),
        _http("POST", "/api/v1/seatservice/seats/left_tickets", "ts-seat-service"),
        _http("GET", "/api/v1/routeservice/routes/*", "ts-route-service"),
        _http("POST", "/api/v1/basicservice/basic/travels", "ts-basic-service"),
        _MYSQL,
    ],
    "ts-contacts-service": [_MYSQL],
    "ts-train-service": [_MYSQL],
    "ts-ui-dashboard": [
        _http("POST", "/api/v1/travelplanservice/travelPlan/cheapest", "ts-travel-plan-service"),
        _http("GET", "/api/v1/consignservice/consigns/account/*", "ts-consign-service"),
        _http("POST", "/api/v1/orderOtherService/orderOther/refresh", "ts-order-other-service"),
        _http("POST", "/api/v1/orderservice/order/refresh", "ts-order-service"),
        _http("POST", "/api/v1/travelplanservice/travelPlan/minStation", "ts-travel-plan-service"),
        _http("POST", "/api/v1/travelservice/trips/left", "ts-travel-service"),
        _http("GET", "/api/v1/trainservice/trains", "ts-train-service"),
        _http("POST", "/api/v1/travel2service/trips/left", "ts-travel2-service"),
        _http("GET", "/api/v1/assuranceservice/assurances/types", "ts-assurance-service"),
        _http("GET", "/api/v1/contactservice/contacts/account/*", "ts-contacts-service"),
        _http("GET", "/api/v1/foodservice/foods/*/*/*", "ts-food-service"),
        _http("POST", "/api/v1/preserveservice/preserve", "ts-preserve-service"),
        _http("GET", "/api/v1/routeservice/routes", "ts-route-service"),
        _http("POST", "/api/v1/travelplanservice/travelPlan/quickest", "ts-travel-plan-service"),
        _http("POST", "/api/v1/users/login", "ts-auth-service"),
        _http("GET", "/api/v1/userservice/users/id/*", "ts-user-service"),
        _http("GET", "/api/v1/verifycode/verify/*", "ts-verification-code-service"),
    ],
    "ts-route-plan-service": [
        _http("POST", "/api/v1/travelservice/trip_detail", "ts-travel-service"),
        _http("GET", "/api/v1/travelservice/routes/*", "ts-travel-service"),
        _http("POST", "/api/v1/travel2service/trips/left", "ts-travel2-service"),
        _http("POST", "/api/v1/travelservice/trips/left", "ts-travel-service"),
        _http("GET", "/api/v1/travel2service/routes/*", "ts-travel2-service"),
        _http("GET", "/api/v1/routeservice/routes/*", "ts-route-service"),
        _http("POST", "/api/v1/travel2service/trip_detail", "ts-travel2-service"),
        _http("POST", "/api/v1/travelservice/trips/routes", "ts-travel-service"),
        _http("GET", "/api/v1/routeservice/routes/*/*", "ts-route-service"),
        _http("POST", "/api/v1/travel2service/trips/routes", "ts-travel2-service"),
    ],
    "ts-preserve-service": [
        _http("GET", "/api/v1/securityservice/securityConfigs/*", "ts-security-service"),
        _http("POST", "/api/v1/basicservice/basic/travel", "ts-basic-service"),
        _http("GET", "/api/v1/contactservice/contacts/*", "ts-contacts-service"),
        _http("POST", "/api/v1/orderservice/order", "ts-order-service"),
        _http("POST", "/api/v1/seatservice/seats", "ts-seat-service"),
        _http("POST", "/api/v1/travelservice/trip_detail", "ts-travel-service"),
    ],
    "ts-security-service": [
        _http("GET", "/api/v1/orderOtherService/orderOther/security/*/*", "ts-order-other-service"),
        _http("GET", "/api/v1/orderservice/order/security/*/*", "ts-order-service"),
        _MYSQL,
    ],
    "ts-consign-service": [_MYSQL],
    "ts-station-food-service": [_MYSQL, _MYSQL],
    "ts-seat-service": [
        _http("POST", "/api/v1/orderservice/order/*", "ts-order-service"),
        _http("POST", "/api/v1/orderOtherService/orderOther/*", "ts-order-other-service"),
        _http("GET", "/api/v1/configservice/configs/DirectTicketAllocationProportion", "ts-config-service"),
    ],
    "ts-config-service": [_MYSQL],
    "ts-price-service": [_MYSQL],
    "ts-user-service": [_MYSQL],
    "ts-station-service": [_MYSQL],
    "ts-food-service": [
        _http("GET", "/api/v1/travelservice/routes/*", "ts-travel-service"),
        _http("POST", "/api/v1/stationfoodservice/stationfoodstores", "ts-station-food-service"),
        _http("GET", "/api/v1/trainfoodservice/trainfoods/*", "ts-train-food-service"),
    ],
    "ts-train-food-service": [_MYSQL, _MYSQL],
    "ts-basic-service": [
        _http("GET", "/api/v1/priceservice/prices/*/GaoTieTwo", "ts-price-service"),
        _http("GET", "/api/v1/priceservice/prices/*/GaoTieOne", "ts-price-service"),
        _http("GET", "/api/v1/priceservice/prices/*/KuaiSu", "ts-price-service"),
        _http("GET", "/api/v1/trainservice/trains/byName/*", "ts-train-service"),
        _http("GET", "/api/v1/stationservice/stations/id/*", "ts-station-service"),
        _http("GET", "/api/v1/priceservice/prices/*/DongCheOne", "ts-price-service"),
        _http("GET", "/api/v1/priceservice/prices/*/TeKuai", "ts-price-service"),
        _http("GET", "/api/v1/priceservice/prices/*/ZhiDa", "ts-price-service"),
        _http("GET", "/api/v1/routeservice/routes/*", "ts-route-service"),
        _http("POST", "/api/v1/priceservice/prices/byRouteIdsAndTrainTypes", "ts-price-service"),
        _http("POST", "/api/v1/routeservice/routes/byIds/", "ts-route-service"),
        _http("POST", "/api/v1/stationservice/stations/idlist", "ts-station-service"),
        _http("POST", "/api/v1/trainservice/trains/byNames", "ts-train-service"),
    ],
    "ts-order-service": [_MYSQL],
    "ts-auth-service": [
        _MYSQL,
        _MYSQL,
        _http("GET", "/api/v1/verifycode/verify/*", "ts-verification-code-service"),
    ],
}

SERVICE_ENDPOINTS: dict[str, tuple[ServiceEndpoint, ...]] = {
    service: tuple(ServiceEndpoint(service, *row) for row in rows)
    for service, rows in _RAW_ENDPOINTS.items()
}


def get_endpoints_by_service(service_name: str) -> list[ServiceEndpoint]:
    """Return all endpoints a service calls, or an empty list if unknown."""
    return list(SERVICE_ENDPOINTS.get(service_name, ()))


def get_all_services() -> list[str]:
    """Return the names of all services with known endpoints."""
    return list(SERVICE_ENDPOINTS)