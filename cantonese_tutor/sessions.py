"""In-memory conversation sessions.

A session maps an opaque id to an ordered list of turns. Nothing is persisted;
sessions live for the process lifetime unless they go idle past the TTL, are
pushed out by the total-session cap, or are closed explicitly.
"""
import logging
import time
import uuid
from collections import OrderedDict
from dataclasses import dataclass, field

logger = logging.getLogger(__name__)


def now_ms() -> int:
    return int(time.time() * 1000)


@dataclass(frozen=True)
class Turn:
    role: str  # 'user' or 'assistant'
    text: str
    scenario: str = ''
    timestamp: int = field(default_factory=now_ms)

    def to_dict(self):
        d = {'role': self.role, 'text': self.text, 'timestamp': self.timestamp}
        if self.role == 'user':
            d['scenario'] = self.scenario
        return d

    def to_message(self):
        """Chat-completion message form ({role, content})."""
        return {'role': self.role, 'content': self.text}


class SessionStore:
    def __init__(self, max_turns: int = 20, max_sessions: int = 1000,
                 ttl_seconds: int = 3600, clock=time.monotonic):
        # Room for at least one user + assistant exchange
        if max_turns < 2:
            raise ValueError(f"max_turns must be at least 2, got {max_turns}")
        self.max_turns = max_turns
        self.max_sessions = max_sessions
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        # session id -> (turns, last touched); ordered by last touch
        self._sessions = OrderedDict()

    def __len__(self):
        return len(self._sessions)

    def __contains__(self, session_id):
        return session_id in self._sessions

    def create_session(self) -> str:
        self._prune()
        session_id = str(uuid.uuid4())
        self._touch(session_id, [])
        return session_id

    def append_turns(self, session_id: str, turns) -> list:
        history = self._sessions[session_id][0] if session_id in self._sessions else []
        history = (history + list(turns))[-self.max_turns:]
        self._touch(session_id, history)
        return list(history)

    def get_history(self, session_id: str) -> list:
        entry = self._sessions.get(session_id)
        return list(entry[0]) if entry else []

    def close_session(self, session_id: str) -> bool:
        return self._sessions.pop(session_id, None) is not None

    def _touch(self, session_id, history):
        self._sessions[session_id] = (history, self._clock())
        self._sessions.move_to_end(session_id)
        while len(self._sessions) > self.max_sessions:
            evicted, _ = self._sessions.popitem(last=False)
            logger.debug("Session cap reached, evicted %s", evicted)

    def _prune(self):
        if self.ttl_seconds <= 0:
            return
        cutoff = self._clock() - self.ttl_seconds
        # Oldest-touched first, so stop at the first live session
        while self._sessions:
            session_id, (_, touched) = next(iter(self._sessions.items()))
            if touched >= cutoff:
                break
            del self._sessions[session_id]
            logger.debug("Pruned idle session %s", session_id)
