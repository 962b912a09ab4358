"""HTTP download and pre-signed upload of asset bytes."""

from __future__ import annotations

import logging
import threading
import time
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, TypeVar, Union

import requests
from requests.auth import AuthBase
from requests.structures import CaseInsensitiveDict

from .config import CACHE_CONTROL, DOWNLOAD_CHUNK_SIZE
from .errors import (
    FilesystemError,
    NetworkError,
    RequestConstructionError,
    StatusError,
    TransferCancelled,
)
from .metadata import read_file, resolve_metadata
from .models import UploadTarget

logger = logging.getLogger("linear_assets")

UPLOAD_OK_STATUSES = (200, 204)

_CONSTRUCTION_ERRORS = (
    requests.exceptions.MissingSchema,
    requests.exceptions.InvalidSchema,
    requests.exceptions.InvalidURL,
    requests.exceptions.InvalidHeader,
    requests.exceptions.URLRequired,
)

RequestTarget = Callable[[str, int, str], UploadTarget]
T = TypeVar("T")

_session: Optional[requests.Session] = None
_session_lock = threading.Lock()


def get_session() -> requests.Session:
    """Return the process-wide session, creating it on first use."""
    global _session
    with _session_lock:
        if _session is None:
            _session = requests.Session()
        return _session


class ExactAuthorization(AuthBase):
    """Send exactly the given ``Authorization`` value, or none at all.

    Passing an explicit auth object keeps requests from filling the header
    in from ``~/.netrc``.
    """

    def __init__(self, value: Optional[str]) -> None:
        self.value = value

    def __call__(self, request: requests.PreparedRequest) -> requests.PreparedRequest:
        if self.value:
            request.headers["Authorization"] = self.value
        else:
            request.headers.pop("Authorization", None)
        return request


class TransferContext:
    """Cancellation handle and optional deadline for a single transfer.

    Blocking network calls go through :meth:`call`, which returns control to
    the caller as soon as :meth:`cancel` is invoked or the deadline passes,
    even if the server has not answered yet. The abandoned worker thread
    finishes in the background and runs the cleanups deferred with
    :meth:`close_later` once its call returns.
    """

    def __init__(self, timeout: Optional[float] = None) -> None:
        self._condition = threading.Condition()
        self._cancelled = False
        self._running_abandoned = 0
        self._deferred: List[Callable[[], Any]] = []
        self._deadline = time.monotonic() + timeout if timeout is not None else None

    def cancel(self) -> None:
        """Cancel the transfer, waking a caller blocked in :meth:`call`."""
        with self._condition:
            self._cancelled = True
            self._condition.notify_all()

    @property
    def cancelled(self) -> bool:
        with self._condition:
            return self._cancelled

    def remaining(self) -> Optional[float]:
        """Seconds left before the deadline, or ``None`` without one."""
        if self._deadline is None:
            return None
        return max(self._deadline - time.monotonic(), 0.0)

    def _stop_reason(self) -> Optional[str]:
        if self.cancelled:
            return "cancelled"
        if self._deadline is not None and time.monotonic() >= self._deadline:
            return "deadline exceeded"
        return None

    @property
    def expired(self) -> bool:
        return self._stop_reason() is not None

    def check(self, operation: str, url: str) -> None:
        reason = self._stop_reason()
        if reason:
            raise TransferCancelled(operation, url, reason)

    def close_later(self, cleanup: Callable[[], Any]) -> None:
        """Run ``cleanup`` now, or once abandoned workers stop using the connection.

        A response cannot be closed while another thread is blocked reading
        it, so closing is handed to the worker in that case.
        """
        with self._condition:
            if self._running_abandoned:
                self._deferred.append(cleanup)
                return
        cleanup()

    def call(self, func: Callable[[], T], operation: str, url: str) -> T:
        """Run a blocking call on a worker thread, waiting for it or for cancellation."""
        self.check(operation, url)
        state: Dict[str, Any] = {"done": False, "abandoned": False}

        def worker() -> None:
            value: Any = None
            error: Optional[BaseException] = None
            try:
                value = func()
            except Exception as exc:  # noqa: BLE001 - re-raised in the waiting thread
                error = exc
            cleanups: List[Callable[[], Any]] = []
            with self._condition:
                state.update(done=True, value=value, error=error)
                if state["abandoned"]:
                    self._running_abandoned -= 1
                    if isinstance(value, requests.Response):
                        cleanups.append(value.close)
                    if not self._running_abandoned:
                        cleanups.extend(self._deferred)
                        self._deferred = []
                self._condition.notify_all()
            for cleanup in cleanups:
                cleanup()

        threading.Thread(target=worker, name=f"linear-assets-{operation}", daemon=True).start()

        with self._condition:
            self._condition.wait_for(
                lambda: state["done"] or self._cancelled, timeout=self.remaining()
            )
            if not state["done"]:
                state["abandoned"] = True
                self._running_abandoned += 1

        if not state["done"]:
            self.check(operation, url)
            raise TransferCancelled(operation, url, "deadline exceeded")
        if state["error"] is not None:
            if self.cancelled:
                raise TransferCancelled(operation, url, "cancelled") from state["error"]
            raise state["error"]
        return state["value"]


def _network_error(ctx: TransferContext, operation: str, url: str, exc: Exception) -> NetworkError:
    if ctx.expired:
        return TransferCancelled(operation, url, "cancelled" if ctx.cancelled else "deadline exceeded")
    return NetworkError(operation, url, str(exc))


def _send(
    session: requests.Session,
    method: str,
    url: str,
    operation: str,
    ctx: TransferContext,
    **kwargs,
) -> requests.Response:
    try:
        return ctx.call(
            lambda: session.request(method, url, timeout=ctx.remaining(), **kwargs),
            operation,
            url,
        )
    except _CONSTRUCTION_ERRORS as exc:
        logger.debug("Could not build %s request for %r: %s", method, url, exc)
        raise RequestConstructionError(operation, url, str(exc)) from exc
    except requests.RequestException as exc:
        logger.debug("%s %s failed: %s", method, url, exc)
        raise _network_error(ctx, operation, url, exc) from exc


def download(
    url: str,
    destination: Union[str, Path],
    auth_header: Optional[str] = None,
    ctx: Optional[TransferContext] = None,
    session: Optional[requests.Session] = None,
) -> Path:
    """Fetch ``url`` and stream the body to ``destination``.

    Only a 200 response is written; any other status raises ``StatusError``
    before the filesystem is touched. Parent directories are created and an
    existing file is overwritten once the first bytes of the body arrive. A
    transfer cancelled after that can leave a truncated file behind.
    """
    ctx = ctx or TransferContext()
    session = session or get_session()
    destination = Path(destination)

    response = _send(
        session,
        "GET",
        url,
        "download",
        ctx,
        auth=ExactAuthorization(auth_header),
        stream=True,
    )
    try:
        ctx.check("download", url)
        if response.status_code != 200:
            logger.debug("Download of %s returned %s", url, response.status_code)
            raise StatusError("download", url, response.status_code, response.reason or "")
        written = _stream_to_file(response, destination, url, ctx)
    finally:
        ctx.close_later(response.close)

    logger.debug("Saved %d bytes from %s to %s", written, url, destination)
    return destination


def _stream_to_file(
    response: requests.Response,
    destination: Path,
    url: str,
    ctx: TransferContext,
) -> int:
    chunks = response.iter_content(chunk_size=DOWNLOAD_CHUNK_SIZE)

    def next_chunk() -> Optional[bytes]:
        try:
            return ctx.call(lambda: next(chunks, None), "download", url)
        except requests.RequestException as exc:
            raise _network_error(ctx, "download", url, exc) from exc

    chunk = next_chunk()

    try:
        destination.parent.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise FilesystemError(
            "create directory", destination.parent, exc.strerror or str(exc), exc.errno
        ) from exc

    written = 0
    try:
        with destination.open("wb") as handle:
            while chunk is not None:
                handle.write(chunk)
                written += len(chunk)
                chunk = next_chunk()
    except OSError as exc:
        raise FilesystemError("write", destination, exc.strerror or str(exc), exc.errno) from exc
    return written


def upload(
    target: UploadTarget,
    content: bytes,
    ctx: Optional[TransferContext] = None,
    session: Optional[requests.Session] = None,
) -> str:
    """PUT ``content`` to the pre-signed URL and return the asset URL.

    Service-supplied headers are applied after the defaults and win on
    conflict. Anything other than 200 or 204 raises ``StatusError`` carrying
    the response body.
    """
    ctx = ctx or TransferContext()
    session = session or get_session()

    headers = CaseInsensitiveDict()
    headers["Content-Type"] = target.content_type
    headers["Cache-Control"] = CACHE_CONTROL
    for key, value in target.headers.items():
        headers[key] = value

    response = _send(
        session,
        "PUT",
        target.upload_url,
        "upload",
        ctx,
        data=content,
        headers=headers,
        auth=ExactAuthorization(headers.get("Authorization")),
    )
    with response:
        ctx.check("upload", target.upload_url)
        if response.status_code not in UPLOAD_OK_STATUSES:
            body = response.text
            logger.debug("Upload to %s returned %s: %s", target.upload_url, response.status_code, body)
            raise StatusError(
                "upload", target.upload_url, response.status_code, response.reason or "", body
            )

    logger.debug("Uploaded %d bytes, asset available at %s", len(content), target.asset_url)
    return target.asset_url


def upload_file(
    path: Union[str, Path],
    request_target: RequestTarget,
    ctx: Optional[TransferContext] = None,
    session: Optional[requests.Session] = None,
) -> str:
    """Upload a local file and return its hosted asset URL.

    ``request_target(filename, size, content_type)`` asks the asset service
    for an upload destination; its errors propagate unchanged.
    """
    path = Path(path)
    metadata = resolve_metadata(path)
    content = read_file(path)
    target = request_target(path.name, metadata.size, metadata.content_type)
    logger.info("Uploading %s (%d bytes, %s)", path, metadata.size, metadata.content_type)
    return upload(target, content, ctx=ctx, session=session)
