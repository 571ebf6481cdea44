"""Coverage for NDJSON stream parsing and the HTTP transport."""

from __future__ import annotations

import http.client
import io
import json
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional
from urllib.error import HTTPError, URLError

import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from terminal_ai import transport as transport_mod
from terminal_ai.transport import GenerateTransport, StreamEvent, iter_stream_events


def _events(lines: List[str], warnings: Optional[List[str]] = None) -> List[StreamEvent]:
    sink = warnings if warnings is not None else []
    return list(iter_stream_events(lines, on_warning=sink.append))


def test_text_increments_then_final_context() -> None:
    events = _events(
        [
            '{"response":"Hi"}',
            '{"response":" there","done":true,"context":[9,9]}',
        ]
    )

    assert [event.text for event in events] == ["Hi", " there"]
    assert events[-1].is_final
    assert events[-1].done
    assert events[-1].context == [9, 9]
    assert not events[0].is_final


def test_blank_lines_are_skipped_silently() -> None:
    warnings: List[str] = []
    events = _events(["", "   ", '{"response":"a"}', "", '{"done":true,"context":[1]}'], warnings)

    assert [event.text for event in events] == ["a", ""]
    assert warnings == []


def test_malformed_line_does_not_change_outcome() -> None:
    clean = ['{"response":"a"}', '{"response":"b"}', '{"done":true,"context":[3,4]}']
    noisy = [clean[0], "<html>oops</html>", clean[1], "[1,2]", clean[2]]
    warnings: List[str] = []

    clean_events = _events(clean)
    noisy_events = _events(noisy, warnings)

    assert noisy_events == clean_events
    assert len(warnings) == 2
    assert "non-JSON line" in warnings[0]


def test_error_record_is_terminal() -> None:
    events = _events(
        [
            '{"response":"partial"}',
            '{"error":"model \\"nope\\" not found"}',
            '{"response":"ignored","done":true,"context":[1]}',
        ]
    )

    assert [event.text for event in events] == ["partial", ""]
    assert events[-1].error == 'model "nope" not found'
    assert events[-1].is_final
    assert events[-1].context is None


def test_done_without_context_has_no_context() -> None:
    events = _events(['{"response":"x","done":true,"context":null}'])

    assert events == [StreamEvent(text="x", done=True, context=None)]


def test_records_after_done_are_not_consumed() -> None:
    consumed: List[str] = []

    def _lines():
        for line in ['{"done":true,"context":[]}', '{"response":"late"}']:
            consumed.append(line)
            yield line

    events = list(iter_stream_events(_lines(), on_warning=lambda _: None))

    assert len(events) == 1
    assert consumed == ['{"done":true,"context":[]}']


def test_bytes_lines_are_decoded() -> None:
    events = list(iter_stream_events([b'{"response":"caf\xc3\xa9"}\n', b'{"done":true}\n']))

    assert events[0].text == "café"
    assert events[-1].done


class _FakeResponse(io.BytesIO):
    def __enter__(self) -> "_FakeResponse":
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()


def _ndjson(*records: Dict[str, Any]) -> bytes:
    return b"".join(json.dumps(record).encode("utf-8") + b"\n" for record in records)


def test_transport_posts_payload_and_streams(monkeypatch: pytest.MonkeyPatch) -> None:
    captured: Dict[str, Any] = {}

    def _fake_urlopen(req, timeout=None):
        captured["url"] = req.full_url
        captured["method"] = req.get_method()
        captured["body"] = json.loads(req.data.decode("utf-8"))
        captured["content_type"] = req.get_header("Content-type")
        return _FakeResponse(_ndjson({"response": "ok"}, {"done": True, "context": [5]}))

    monkeypatch.setattr(transport_mod, "urlopen", _fake_urlopen)
    transport = GenerateTransport("http://localhost:11434/api/generate")
    payload = {"model": "llama3", "prompt": "hi", "stream": True}

    events = list(transport.stream(payload))

    assert [event.text for event in events] == ["ok", ""]
    assert events[-1].context == [5]
    assert captured["url"] == "http://localhost:11434/api/generate"
    assert captured["method"] == "POST"
    assert captured["body"] == payload
    assert captured["content_type"] == "application/json"


def test_transport_connection_failure_raises_urlerror(monkeypatch: pytest.MonkeyPatch) -> None:
    def _refuse(req, timeout=None):
        raise URLError(ConnectionRefusedError(111, "Connection refused"))

    monkeypatch.setattr(transport_mod, "urlopen", _refuse)
    transport = GenerateTransport("http://localhost:11434/api/generate")

    with pytest.raises(URLError) as info:
        list(transport.stream({"model": "m", "prompt": "p", "stream": True}))

    assert "Failed to reach Ollama at http://localhost:11434/api/generate" in str(info.value.reason)


def test_transport_http_error_carries_status_and_body(monkeypatch: pytest.MonkeyPatch) -> None:
    def _not_found(req, timeout=None):
        raise HTTPError(
            req.full_url,
            404,
            "Not Found",
            {},  # type: ignore[arg-type]
            io.BytesIO(b'{"error":"model \'ghost\' not found"}'),
        )

    monkeypatch.setattr(transport_mod, "urlopen", _not_found)
    transport = GenerateTransport("http://localhost:11434/api/generate")

    with pytest.raises(HTTPError) as info:
        list(transport.stream({"model": "ghost", "prompt": "p", "stream": True}))

    assert info.value.code == 404
    assert "HTTP 404 Not Found from Ollama endpoint" in info.value.reason
    assert "model 'ghost' not found" in info.value.reason


def test_transport_stream_ending_early_is_a_transport_failure(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(
        transport_mod,
        "urlopen",
        lambda req, timeout=None: _FakeResponse(_ndjson({"response": "cut"})),
    )
    transport = GenerateTransport("http://localhost:11434/api/generate")
    seen: List[str] = []

    with pytest.raises(URLError) as info:
        for event in transport.stream({"model": "m", "prompt": "p", "stream": True}):
            seen.append(event.text)

    assert seen == ["cut"]
    assert "ended before completion" in str(info.value.reason)


def test_transport_mid_stream_socket_error(monkeypatch: pytest.MonkeyPatch) -> None:
    class _Broken(_FakeResponse):
        def __iter__(self):
            yield b'{"response":"first"}\n'
            raise ConnectionResetError(104, "Connection reset by peer")

    monkeypatch.setattr(transport_mod, "urlopen", lambda req, timeout=None: _Broken(b""))
    transport = GenerateTransport("http://localhost:11434/api/generate")
    seen: List[str] = []

    with pytest.raises(URLError) as info:
        for event in transport.stream({"model": "m", "prompt": "p", "stream": True}):
            seen.append(event.text)

    assert seen == ["first"]
    assert "Network error talking to Ollama" in str(info.value.reason)


def test_falsy_error_field_is_not_an_error() -> None:
    events = _events(['{"response":"a","error":false}', '{"error":0,"done":true,"context":[1]}'])

    assert [event.error for event in events] == [None, None]
    assert events[-1].done
    assert events[-1].context == [1]


def test_transport_non_http_reply_raises_urlerror(monkeypatch: pytest.MonkeyPatch) -> None:
    def _ssh_banner(req, timeout=None):
        raise http.client.BadStatusLine("SSH-2.0-OpenSSH_9.6")

    monkeypatch.setattr(transport_mod, "urlopen", _ssh_banner)
    transport = GenerateTransport("http://localhost:22/api/generate")

    with pytest.raises(URLError) as info:
        list(transport.stream({"model": "m", "prompt": "p", "stream": True}))

    assert "Invalid HTTP response from Ollama at http://localhost:22/api/generate" in str(info.value.reason)
    assert "SSH-2.0" in str(info.value.reason)


def test_transport_truncated_chunked_body_raises_urlerror(monkeypatch: pytest.MonkeyPatch) -> None:
    class _Truncated(_FakeResponse):
        def __iter__(self):
            yield b'{"response":"part"}\n'
            raise http.client.IncompleteRead(b"{\"resp", 12)

    monkeypatch.setattr(transport_mod, "urlopen", lambda req, timeout=None: _Truncated(b""))
    transport = GenerateTransport("http://localhost:11434/api/generate")
    seen: List[str] = []

    with pytest.raises(URLError):
        for event in transport.stream({"model": "m", "prompt": "p", "stream": True}):
            seen.append(event.text)

    assert seen == ["part"]
