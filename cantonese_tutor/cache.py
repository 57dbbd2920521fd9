import logging
from collections import OrderedDict

logger = logging.getLogger(__name__)


def normalize_key(text: str) -> str:
    return (text or '').strip().casefold()


class AudioCache:
    """Synthesized audio keyed by normalized reply text.

    Bounded, first-in-first-out: a lookup hit does not refresh an entry, so the
    entry evicted on overflow is always the earliest inserted one still present.
    """

    def __init__(self, max_entries: int = 50):
        self.max_entries = max_entries
        self._entries = OrderedDict()
        self.hits = 0
        self.misses = 0

    def __len__(self):
        return len(self._entries)

    def __contains__(self, key):
        return normalize_key(key) in self._entries

    def keys(self):
        return list(self._entries.keys())

    def lookup(self, key: str):
        payload = self._entries.get(normalize_key(key))
        if payload is None:
            self.misses += 1
        else:
            self.hits += 1
        return payload

    def store(self, key: str, payload: str) -> None:
        key = normalize_key(key)
        if key in self._entries:
            return
        self._entries[key] = payload
        if len(self._entries) > self.max_entries:
            evicted, _ = self._entries.popitem(last=False)
            logger.debug("Audio cache full, evicted %r", evicted[:30])
