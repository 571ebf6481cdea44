"""One conversational turn: compose, request, stream, then commit the context."""

from __future__ import annotations

import sys
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, Iterator, List, Optional, Protocol, TextIO, Tuple
from urllib.error import URLError

from .colors import color, error, info, warn
from .context_store import CommitResult, ContextStore
from .prompt import build_payload, compose_prompt
from .settings import Settings
from .transport import GenerateTransport, StreamEvent

__all__ = [
    "SessionState",
    "TurnResult",
    "Session",
    "make_stream_printer",
]


class SessionState(str, Enum):
    IDLE = "idle"
    COMPOSING = "composing"
    REQUESTING = "requesting"
    STREAMING = "streaming"
    COMMITTING = "committing"
    DONE = "done"
    ERROR = "error"


class StreamingTransport(Protocol):
    url: str

    def stream(self, payload: Dict[str, Any]) -> Iterator[StreamEvent]:
        ...


@dataclass(slots=True)
class TurnResult:
    state: SessionState
    exit_code: int
    text: str = ""
    commit: Optional[CommitResult] = None

    @property
    def ok(self) -> bool:
        return self.exit_code == 0


def make_stream_printer(stream: Optional[TextIO] = None) -> Tuple[Callable[[str], None], Callable[[], None]]:
    """Return ``(emit, finish)`` callbacks that write increments unbuffered."""

    state = {"shown": False}

    def emit(piece: str) -> None:
        if not piece:
            return
        print(piece, end="", flush=True, file=stream or sys.stdout)
        state["shown"] = True

    def finish() -> None:
        if state["shown"]:
            print(file=stream or sys.stdout, flush=True)
        state["shown"] = False

    return emit, finish


@dataclass
class Session:
    """Sequence a single turn against the backend.

    The context file is only written after the stream ends with ``done``;
    transport failures and backend errors leave it exactly as it was.
    """

    settings: Settings
    store: ContextStore
    transport: Optional[StreamingTransport] = None
    on_text: Optional[Callable[[str], None]] = None
    on_finish: Optional[Callable[[], None]] = None
    state: SessionState = SessionState.IDLE
    transitions: List[SessionState] = field(default_factory=list)

    def __post_init__(self) -> None:
        if self.transport is None:
            self.transport = GenerateTransport(self.settings.api_url)
        if self.on_text is None:
            self.on_text, default_finish = make_stream_printer()
            if self.on_finish is None:
                self.on_finish = default_finish
        self.transitions = [self.state]

    def _enter(self, state: SessionState) -> None:
        self.state = state
        self.transitions.append(state)

    def reset(self) -> bool:
        return self.store.reset()

    def run_turn(
        self,
        prompt: str,
        *,
        notes: str = "",
        system: str = "",
        model: Optional[str] = None,
    ) -> TurnResult:
        prior_context = self.store.load()

        self._enter(SessionState.COMPOSING)
        final_prompt = compose_prompt(prompt, notes)

        self._enter(SessionState.REQUESTING)
        payload = build_payload(
            prompt=final_prompt,
            model=model or self.settings.model,
            system=system or None,
            context=prior_context,
        )

        pieces: List[str] = []
        terminal: Optional[StreamEvent] = None
        events = self.transport.stream(payload)
        try:
            for event in events:
                if self.state is not SessionState.STREAMING:
                    self._enter(SessionState.STREAMING)
                if event.text:
                    pieces.append(event.text)
                    self.on_text(event.text)
                if event.is_final:
                    terminal = event
                    break
        except URLError as exc:
            self._finish_output()
            detail = getattr(exc, "reason", None) or str(exc)
            error(
                f"API call failed: {detail}\n"
                f"Check Ollama server status and API URL ({self.transport.url})."
            )
            return self._fail(pieces)
        finally:
            close = getattr(events, "close", None)
            if close is not None:
                close()
        self._finish_output()

        if terminal is None:
            error(
                "API stream ended before a final response.\n"
                f"Check Ollama server status and API URL ({self.transport.url})."
            )
            return self._fail(pieces)

        if terminal.error is not None:
            print(color(f"[API Error] {terminal.error}", fg="red", stream=sys.stderr), file=sys.stderr)
            info("Context not saved due to API error.")
            return self._fail(pieces)

        if terminal.context is None:
            warn("Could not extract context array from final API response. Context not saved.")
            self._enter(SessionState.DONE)
            return TurnResult(state=self.state, exit_code=0, text="".join(pieces))

        self._enter(SessionState.COMMITTING)
        commit = self.store.commit(terminal.context, self.settings.max_context_size)
        if commit is None:
            return self._fail(pieces)
        self._enter(SessionState.DONE)
        return TurnResult(state=self.state, exit_code=0, text="".join(pieces), commit=commit)

    def _finish_output(self) -> None:
        if self.on_finish is not None:
            self.on_finish()

    def _fail(self, pieces: List[str]) -> TurnResult:
        self._enter(SessionState.ERROR)
        return TurnResult(state=self.state, exit_code=1, text="".join(pieces))
