# File: voxredact/core/http.py
"""
Per-call httpx clients tied to a CancellationToken.

Cancelling the token closes the client, which aborts the in-flight request;
the resulting transport error is reported as PipelineCancelledError.
"""
import logging
from contextlib import contextmanager
from typing import Iterator, Optional

import httpx

from voxredact.core.cancellation import CancellationToken
from voxredact.core.config.settings import settings
from voxredact.core.errors import PipelineCancelledError, RemoteServiceError

logger = logging.getLogger(__name__)


@contextmanager
def cancellable_client(
    token: CancellationToken,
    base_url: str = "",
    timeout: Optional[float] = None,
    transport: Optional[httpx.BaseTransport] = None,
) -> Iterator[httpx.Client]:
    token.raise_if_cancelled()
    client = httpx.Client(
        base_url=base_url,
        timeout=timeout if timeout is not None else settings.REQUEST_TIMEOUT_SECONDS,
        transport=transport,
    )
    unregister = token.on_cancel(client.close)
    try:
        yield client
    except (httpx.HTTPError, RuntimeError) as e:
        # A closed client surfaces as a transport or "client closed" error
        if token.cancelled:
            raise PipelineCancelledError() from e
        raise
    finally:
        unregister()
        client.close()


def raise_for_service(service: str, response: httpx.Response) -> None:
    """Non-2xx -> RemoteServiceError carrying status and raw body."""
    if response.is_success:
        return
    body = response.text
    logger.error(f"{service} API returned {response.status_code}")
    raise RemoteServiceError(service, response.status_code, body)
