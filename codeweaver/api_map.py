"""HTTP endpoint detection from file layout and registration calls."""

from __future__ import annotations

import re
from typing import List, Optional

from .models import APIEndpoint, APIMap, FileSymbolRecord, ProjectIndex
from .resolver import HTTP_METHODS, registration_method

_APP_ROUTE = re.compile(r"(?:^|/)app/(.*?)/route\.(?:ts|tsx|js|jsx|mjs|cjs)$")
_PAGES_API = re.compile(r"(?:^|/)pages/(api/.*?)\.(?:ts|tsx|js|jsx|mjs|cjs)$")
_ROUTE_PARAM = re.compile(r"\[([^\]]+)\]")

DYNAMIC_PATH = "(dynamic)"


def route_params(route: str) -> Optional[List[str]]:
    """``/api/users/[id]`` -> ``["id"]``; None when there are no parameters."""
    params = _ROUTE_PARAM.findall(route)
    return params or None


def app_route_path(path: str) -> Optional[str]:
    match = _APP_ROUTE.search(path)
    return "/" + match.group(1) if match else None


def pages_api_path(path: str) -> Optional[str]:
    match = _PAGES_API.search(path)
    if not match:
        return None
    route = "/" + match.group(1)
    if route.endswith("/index"):
        route = route[: -len("/index")]
    return route


def _route_file_endpoints(record: FileSymbolRecord) -> List[APIEndpoint]:
    route = app_route_path(record.path)
    if route is None:
        return []
    return [
        APIEndpoint(
            method=fn.name.upper(),
            path=route,
            file=record.path,
            handler=fn.name,
            params=route_params(route),
            description=fn.description,
        )
        for fn in record.functions
        if fn.exported and fn.name.upper() in HTTP_METHODS
    ]


def _pages_api_endpoints(record: FileSymbolRecord) -> List[APIEndpoint]:
    route = pages_api_path(record.path)
    if route is None:
        return []
    for fn in record.functions:
        if fn.name in ("default", "handler"):
            return [APIEndpoint(
                method="ALL",
                path=route,
                file=record.path,
                handler=fn.name,
                params=route_params(route),
                description=fn.description,
            )]
    return []


def _registration_endpoints(record: FileSymbolRecord) -> List[APIEndpoint]:
    endpoints: List[APIEndpoint] = []
    for fn in record.functions:
        for callee in fn.call_sites:
            method = registration_method(callee)
            if method:
                endpoints.append(APIEndpoint(
                    method=method,
                    path=DYNAMIC_PATH,
                    file=record.path,
                    handler=fn.name,
                    description=fn.description,
                ))
    return endpoints


def build_api_map(index: ProjectIndex) -> APIMap:
    endpoints: List[APIEndpoint] = []
    for record in index.files:
        endpoints += _route_file_endpoints(record)
        endpoints += _pages_api_endpoints(record)
        endpoints += _registration_endpoints(record)
    return APIMap(endpoints=endpoints)
