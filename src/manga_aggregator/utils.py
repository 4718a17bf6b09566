"""HTTP helper shared by the source adapters."""

from __future__ import annotations

import json
import socket
from typing import Any
from urllib.error import HTTPError, URLError
from urllib.parse import urlencode
from urllib.request import Request, urlopen

from .errors import UpstreamError, UpstreamErrorKind

DEFAULT_TIMEOUT_SECONDS = 10.0
USER_AGENT = "manga-aggregator/0.1"

QueryParams = dict[str, Any] | list[tuple[str, Any]]


def build_url(base_url: str, path: str, params: QueryParams | None = None) -> str:
    """Join base url and path, appending encoded query params.

    List values expand into repeated keys (``includes[]=a&includes[]=b``).
    """

    url = f"{base_url.rstrip('/')}/{path.lstrip('/')}"
    if not params:
        return url
    return f"{url}?{urlencode(params, doseq=True)}"


def fetch_json(
    url: str,
    timeout: float = DEFAULT_TIMEOUT_SECONDS,
    headers: dict[str, str] | None = None,
    source: str = "",
) -> Any:
    """GET ``url`` and decode its JSON body.

    Raises:
        UpstreamError: On timeout, transport failure, non-2xx status or a body
            that is not valid JSON.
    """

    request_headers = {"Accept": "application/json", "User-Agent": USER_AGENT}
    request_headers.update(headers or {})
    request = Request(url, headers=request_headers, method="GET")

    try:
        with urlopen(request, timeout=timeout) as response:
            status = getattr(response, "status", 200)
            if not 200 <= status < 300:
                raise UpstreamError(UpstreamErrorKind.BAD_STATUS, f"HTTP {status} from {url}", source)
            raw = response.read()
    except HTTPError as exc:
        raise UpstreamError(UpstreamErrorKind.BAD_STATUS, f"HTTP {exc.code} from {url}", source) from exc
    except URLError as exc:
        if isinstance(exc.reason, (TimeoutError, socket.timeout)):
            raise UpstreamError(UpstreamErrorKind.TIMEOUT, f"timed out after {timeout}s: {url}", source) from exc
        raise UpstreamError(UpstreamErrorKind.TRANSPORT, f"{exc.reason}: {url}", source) from exc
    except (TimeoutError, socket.timeout) as exc:
        raise UpstreamError(UpstreamErrorKind.TIMEOUT, f"timed out after {timeout}s: {url}", source) from exc
    except OSError as exc:
        raise UpstreamError(UpstreamErrorKind.TRANSPORT, f"{exc}: {url}", source) from exc

    try:
        return json.loads(raw.decode("utf-8"))
    except (UnicodeDecodeError, ValueError) as exc:
        raise UpstreamError(UpstreamErrorKind.PARSE_FAILURE, f"invalid JSON from {url}: {exc}", source) from exc
