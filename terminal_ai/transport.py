"""Streaming transport for the Ollama ``/api/generate`` endpoint."""

from __future__ import annotations

import json
from dataclasses import dataclass
from http.client import HTTPException
from typing import Any, Callable, Dict, Iterable, Iterator, List, Optional, Union
from urllib.error import HTTPError, URLError
from urllib.request import Request, urlopen

from .colors import warn

__all__ = ["StreamEvent", "GenerateTransport", "iter_stream_events"]

WarningHandler = Callable[[str], None]


@dataclass(slots=True)
class StreamEvent:
    """One parsed record from the response stream."""

    text: str = ""
    done: bool = False
    error: Optional[str] = None
    context: Optional[List[Any]] = None

    @property
    def is_final(self) -> bool:
        return self.done or self.error is not None


def iter_stream_events(
    lines: Iterable[Union[bytes, str]],
    *,
    on_warning: Optional[WarningHandler] = None,
) -> Iterator[StreamEvent]:
    """Parse newline-delimited JSON records into :class:`StreamEvent` objects.

    Text increments are yielded as soon as their line is read. The generator
    stops after the first record carrying ``error`` or ``done: true``; that
    record is always the last event. Lines that are not JSON objects are
    reported through ``on_warning`` and skipped.
    """

    report = on_warning or warn
    for raw in lines:
        if isinstance(raw, bytes):
            line = raw.decode("utf-8", errors="replace")
        else:
            line = raw
        line = line.strip()
        if not line:
            continue

        try:
            record = json.loads(line)
        except json.JSONDecodeError:
            record = None
        if not isinstance(record, dict):
            report(f"Received non-JSON line from API stream: {line}")
            continue

        text = record.get("response") or ""
        if not isinstance(text, str):
            text = str(text)
        err = record.get("error")
        if err:
            yield StreamEvent(text=text, error=str(err))
            return
        if record.get("done") is True:
            context = record.get("context")
            yield StreamEvent(text=text, done=True, context=context)
            return
        if text:
            yield StreamEvent(text=text)


class GenerateTransport:
    """Thin wrapper around streaming HTTP requests to the configured endpoint."""

    def __init__(self, url: str, *, timeout: Optional[float] = None) -> None:
        self.url = url
        self.timeout = timeout

    def stream(
        self,
        payload: Dict[str, Any],
        *,
        on_warning: Optional[WarningHandler] = None,
    ) -> Iterator[StreamEvent]:
        """POST ``payload`` and lazily yield the parsed response stream.

        Connection failures, non-success statuses and a body that ends without a
        ``done``/``error`` record raise :class:`URLError` (or :class:`HTTPError`),
        which callers keep distinct from errors reported inside the stream.
        """

        data = json.dumps(payload).encode("utf-8")
        req = Request(self.url, data=data, headers=self._headers(), method="POST")
        finished = False
        try:
            with urlopen(req, timeout=self.timeout) as resp:  # nosec - local endpoint
                for event in iter_stream_events(resp, on_warning=on_warning):
                    finished = event.is_final
                    yield event
        except HTTPError as he:
            body = _extract_error_body(he)
            message = _http_error_message(he, suffix=body)
            raise HTTPError(req.full_url, he.code, message, he.headers, None) from he
        except URLError as ue:
            raise URLError(f"Failed to reach Ollama at {self.url}: {ue.reason}") from ue
        except OSError as oe:
            raise URLError(f"Network error talking to Ollama at {self.url}: {oe}") from oe
        except HTTPException as he:
            raise URLError(f"Invalid HTTP response from Ollama at {self.url}: {he!r}") from he
        if not finished:
            raise URLError(f"Stream from {self.url} ended before completion")

    def _headers(self) -> Dict[str, str]:
        return {
            "Content-Type": "application/json",
            "Accept": "application/x-ndjson",
        }


def _extract_error_body(error: HTTPError) -> str:
    try:
        raw = error.read()
    except Exception:
        return ""
    if not raw:
        return ""
    text = raw.decode("utf-8", errors="replace").strip()
    try:
        obj = json.loads(text)
    except json.JSONDecodeError:
        return text
    if isinstance(obj, dict) and obj.get("error"):
        return str(obj["error"])
    return text


def _http_error_message(error: HTTPError, *, suffix: str = "") -> str:
    status = getattr(error, "code", None)
    reason = getattr(error, "reason", "HTTP error")
    message = f"HTTP {status or ''} {reason} from Ollama endpoint"
    if status == 404:
        message += ": endpoint not found (URL path or model name invalid?)"
    if suffix:
        message = f"{message}\n{suffix}"
    return message
