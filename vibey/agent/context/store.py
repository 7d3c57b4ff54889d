from typing import Dict, Iterator, List, Optional, Tuple

TASK_KEY = "task_description"
CONTEXT_PREFIX = "context_"


def context_key(path: str) -> str:
    return f"{CONTEXT_PREFIX}{path}"


class MasterContextStore:
    """
    Passive key -> text store for everything learned in a session.

    Insertion order is preserved; writing an existing key replaces its
    value in place (last write wins).
    """

    def __init__(self):
        self._entries: Dict[str, str] = {}

    def set(self, key: str, value: str) -> None:
        self._entries[key] = value

    def get(self, key: str) -> Optional[str]:
        return self._entries.get(key)

    def remove(self, key: str) -> bool:
        return self._entries.pop(key, None) is not None

    def clear(self) -> None:
        self._entries.clear()

    def keys(self) -> List[str]:
        return list(self._entries)

    def items(self) -> Iterator[Tuple[str, str]]:
        return iter(list(self._entries.items()))

    def prioritized(self) -> List[Tuple[str, str]]:
        """Entries ordered task first, then file context, then the rest."""

        def rank(key: str) -> int:
            if key == TASK_KEY:
                return 0
            if key.startswith(CONTEXT_PREFIX):
                return 1
            return 2

        # sorted() is stable, so insertion order holds within each rank.
        return sorted(self._entries.items(), key=lambda kv: rank(kv[0]))

    def snapshot(self) -> Dict[str, str]:
        return dict(self._entries)

    def restore(self, entries: Dict[str, str]) -> None:
        self._entries = dict(entries)

    def __contains__(self, key: str) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)
