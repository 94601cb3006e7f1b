from __future__ import annotations

import concurrent.futures
import threading
from typing import Any, Dict, Optional

import httpx

from unillm import config
from unillm import logger as logger_mod

from ..context import CallContext
from ..errors import (
    DeadlineExceededError,
    EmptyCredentialError,
    InvalidUpstreamReplyError,
    RequestCancelledError,
    TransportError,
    UpstreamError,
)

log = logger_mod.get_logger()


def upstream_message(resp: httpx.Response) -> str:
    """The provider's own error text, verbatim, falling back to the raw body."""

    try:
        data = resp.json()
    except ValueError:
        return resp.text

    if isinstance(data, dict):
        err = data.get("error")
        if isinstance(err, dict) and isinstance(err.get("message"), str):
            return err["message"]
        if isinstance(err, str) and err:
            return err
    return resp.text


class HTTPProvider:
    """Blocking JSON-over-HTTP plumbing shared by the HTTP adapters.

    Subclasses set `name` and build request bodies/headers; this class owns
    credential checks, deadlines, transport errors and upstream error mapping.
    Requests are never retried.
    """

    name = "http"

    def __init__(
        self,
        *,
        api_key: str = "",
        api_url: str,
        http_client: Optional[httpx.Client] = None,
        timeout_s: float = config.REQUEST_TIMEOUT_S,
    ) -> None:
        self.api_key = api_key
        self.api_url = api_url
        self.http_client = http_client
        self.timeout_s = timeout_s

    def _require_key(self) -> None:
        if not self.api_key:
            raise EmptyCredentialError(self.name)

    def _headers(self) -> Dict[str, str]:
        raise NotImplementedError

    def _send(
        self, ctx: CallContext, body: Dict[str, Any], timeout: float
    ) -> httpx.Response:
        """POST on a worker thread; return when it finishes, is cancelled or expires.

        A cancelled or expired call returns at once. A per-call client is closed
        to abort its connection; a shared client's request is abandoned.
        """

        owned = self.http_client is None
        client = httpx.Client() if owned else self.http_client
        stop = threading.Event()

        pool = concurrent.futures.ThreadPoolExecutor(
            max_workers=1, thread_name_prefix=f"unillm-{self.name}"
        )
        future = pool.submit(
            client.post,
            self.api_url,
            json=body,
            headers=self._headers(),
            timeout=timeout,
        )
        future.add_done_callback(lambda _f: stop.set())
        release = ctx.on_cancel(stop.set)

        try:
            finished = stop.wait(ctx.remaining())
            if ctx.cancelled:
                log.debug("%s request cancelled in flight", self.name)
                raise RequestCancelledError()
            if not finished:
                raise DeadlineExceededError(f"{self.name} request exceeded deadline")
            try:
                return future.result()
            except httpx.TimeoutException as e:
                raise DeadlineExceededError(f"{self.name} request timed out: {e}") from e
            except httpx.HTTPError as e:
                raise TransportError(
                    f"failed to send request to {self.name}: {e}"
                ) from e
        finally:
            release()
            pool.shutdown(wait=False)
            if owned:
                client.close()

    def _post(self, ctx: CallContext, body: Dict[str, Any]) -> Dict[str, Any]:
        ctx.check()
        timeout = ctx.timeout_for(self.timeout_s)
        if timeout <= 0:
            raise DeadlineExceededError()

        log.debug(
            "POST %s provider=%s model=%s timeout=%.1fs",
            self.api_url,
            self.name,
            body.get("model"),
            timeout,
        )

        resp = self._send(ctx, body, timeout)

        if not resp.is_success:
            message = upstream_message(resp)
            log.warning(
                "%s API returned status %d: %s", self.name, resp.status_code, message
            )
            raise UpstreamError(self.name, resp.status_code, message)

        try:
            data = resp.json()
        except ValueError as e:
            raise InvalidUpstreamReplyError(
                self.name, f"failed to decode response body: {e}"
            ) from e

        if not isinstance(data, dict):
            raise InvalidUpstreamReplyError(self.name, "response body is not an object")

        err = data.get("error")
        if err:
            message = err.get("message") if isinstance(err, dict) else str(err)
            raise UpstreamError(self.name, resp.status_code, str(message))

        return data
