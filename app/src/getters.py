from fastapi import Request

from app.src import schemas
from app.src.orders import OrderManager


def requestInfo(request: Request) -> schemas.RequestInfo:
    """
    Extract metadata about the incoming request.

    Args:
        request (Request): FastAPI request object.

    Returns:
        schemas.RequestInfo: Pydantic model containing:
            - method (str): HTTP method (GET, POST, etc.).
            - path (str): Path portion of the request URL.
    """
    return schemas.RequestInfo(method=request.method, path=request.url.path)


def orderManager(request: Request) -> OrderManager:
    """Fetch the process wide order manager built at application startup."""
    return request.app.state.orderManager
