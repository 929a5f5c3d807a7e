"""
HTTP handlers

Each handler module registers its endpoints on the shared router through the
`api_handler` decorator; `app.create_app()` mounts the router.
"""

from typing import Any, Callable, Dict, List, Optional, Type

from fastapi import APIRouter

from core.logger import get_logger
from models.base import OperationDataResponse

logger = get_logger(__name__)

router = APIRouter()

# path -> handler metadata, for introspection and tests
_handlers: Dict[str, Dict[str, Any]] = {}


def api_handler(
    body: Optional[Type] = None,
    method: str = "POST",
    path: Optional[str] = None,
    tags: Optional[List[str]] = None,
) -> Callable:
    """
    Register an async function as an HTTP endpoint

    Args:
        body: pydantic request model the handler takes as `body`
        method: HTTP method
        path: route path; defaults to "/" + function name with dashes
        tags: OpenAPI tags

    Responses are validated as OperationDataResponse unless the handler returns
    a Response object (e.g. a stream). The decorated function is returned
    unchanged so it can be called directly.
    """

    def decorator(func: Callable) -> Callable:
        route_path = path or "/" + func.__name__.replace("_", "-")
        if route_path in _handlers:
            raise ValueError(f"Handler already registered for {route_path}")

        router.add_api_route(
            route_path,
            func,
            methods=[method],
            tags=tags,
            name=func.__name__,
            response_model=OperationDataResponse,
        )
        _handlers[route_path] = {
            "name": func.__name__,
            "method": method,
            "body": body.__name__ if body is not None else None,
            "tags": tags or [],
        }
        logger.debug(f"Registered handler {method} {route_path} -> {func.__name__}")
        return func

    return decorator


def get_registered_handlers() -> Dict[str, Dict[str, Any]]:
    return dict(_handlers)


# Import handler modules so their routes register on the router
from . import events, habits, planning, users  # noqa: E402,F401

__all__ = ["api_handler", "router", "get_registered_handlers"]
