"""
HTTP Client Module

Builds the httpx.AsyncClient each teacher session talks to the upstream
services through:
- Connection pooling for efficient reuse
- A per-session cookie jar, so upstream credentials ride on cookies
- Configurable timeouts

Requests are never retried. A failed call surfaces immediately and the
user re-triggers it by navigating again.
"""

import logging
from typing import Any, Optional

import httpx

from teacher_portal.core.config import settings
from teacher_portal.core.exceptions import RemoteError


logger = logging.getLogger(__name__)


# ============== Configuration ==============

# Connection pool limits
MAX_CONNECTIONS = 100
MAX_KEEPALIVE_CONNECTIONS = 20
KEEPALIVE_EXPIRY = 30  # seconds


# ============== Client Factory ==============

def build_client(
    timeout: Optional[float] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> httpx.AsyncClient:
    """
    Create an async HTTP client for one teacher session.
    
    Args:
        timeout: Request timeout in seconds (defaults to HTTP_TIMEOUT).
        transport: Optional transport override, used by tests.
        
    Returns:
        httpx.AsyncClient: A client with its own cookie jar.
    """
    limits = httpx.Limits(
        max_connections=MAX_CONNECTIONS,
        max_keepalive_connections=MAX_KEEPALIVE_CONNECTIONS,
        keepalive_expiry=KEEPALIVE_EXPIRY,
    )
    kwargs: dict[str, Any] = {
        "limits": limits,
        "timeout": httpx.Timeout(timeout or settings.HTTP_TIMEOUT),
        "headers": {"Content-Type": "application/json"},
    }
    if transport is not None:
        kwargs["transport"] = transport
    else:
        kwargs["http2"] = True
    return httpx.AsyncClient(**kwargs)


# ============== Request Helper ==============

async def send_request(
    client: httpx.AsyncClient,
    operation: str,
    method: str,
    url: str,
    **kwargs: Any,
) -> httpx.Response:
    """
    Issue exactly one request.
    
    Args:
        client: Session client.
        operation: Gateway operation name, used in errors and logs.
        method: HTTP method (GET, POST, etc.)
        url: Request URL
        **kwargs: Additional arguments passed to httpx request
        
    Returns:
        httpx.Response: The response object, whatever its status.
        
    Raises:
        RemoteError: If the request could not be completed.
    """
    try:
        response = await client.request(method, url, **kwargs)
    except httpx.HTTPError as e:
        logger.warning("%s %s failed: %s", method, url, e)
        raise RemoteError(operation, None, str(e) or type(e).__name__) from e

    logger.debug("%s %s -> %s", method, url, response.status_code)
    return response
