"""Session scoped memo of provider lookups."""

from typing import Dict, Optional

from reviews_connect.models import ResolveOutcome


class ResultCache:
    """Maps a lookup token to the outcome it produced. Lives as long as its session."""

    def __init__(self) -> None:
        self._entries: Dict[str, ResolveOutcome] = {}

    def get(self, token: str) -> Optional[ResolveOutcome]:
        return self._entries.get(token)

    def put(self, token: str, outcome: ResolveOutcome) -> None:
        self._entries[token] = outcome

    def __contains__(self, token: object) -> bool:
        return token in self._entries

    def __len__(self) -> int:
        return len(self._entries)
