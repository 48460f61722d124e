"""Pooled ``httpx.Client`` instances.

A conversation issues one request per turn against the same host, so the
transport reuses connections through clients cached per
``(base_url, purpose)``. Separate purposes ("gemini.chat", "gemini.stream",
"gemini.models") keep a long-running stream from holding the connection a
buffered call or model listing needs.

Clients carry only the default timeout; the transport passes the effective
timeout on every request. Everything is closed at interpreter exit, and
tests call :func:`close_all_clients` between cases.
"""

from __future__ import annotations

import atexit
import contextlib
import threading
from typing import Dict, Optional, Tuple

import httpx

from ..timeouts import get_timeout_config, to_httpx_timeout

PoolKey = Tuple[Optional[str], str]

_pool: Dict[PoolKey, httpx.Client] = {}
_pool_lock = threading.Lock()


def _new_client(base_url: Optional[str]) -> httpx.Client:
    timeout = to_httpx_timeout(get_timeout_config(), streaming=False)
    if base_url:
        return httpx.Client(base_url=base_url, timeout=timeout)
    return httpx.Client(timeout=timeout)


def get_httpx_client(base_url: Optional[str], purpose: str) -> httpx.Client:
    """Return the open client for ``(base_url, purpose)``, creating it if needed."""
    key: PoolKey = (base_url, purpose)
    with _pool_lock:
        client = _pool.get(key)
        if client is None or client.is_closed:
            client = _pool[key] = _new_client(base_url)
        return client


def close_all_clients() -> None:
    """Close every pooled client and empty the pool."""
    with _pool_lock:
        clients = list(_pool.values())
        _pool.clear()
    for client in clients:
        with contextlib.suppress(httpx.HTTPError, RuntimeError):
            client.close()


atexit.register(close_all_clients)

__all__ = ["get_httpx_client", "close_all_clients"]
