"""Core data models shared by the profile connection workflow."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Optional, Tuple, Union


@dataclass(frozen=True, slots=True)
class Review:
    """Single review as delivered by the review provider."""

    author: str
    rating: int
    timestamp: int
    text: Optional[str] = None
    reply: Optional[str] = None


@dataclass(frozen=True, slots=True)
class Place:
    """Normalized business profile resolved from the provider or autocomplete."""

    page_id: str
    name: str
    avatar_url: Optional[str] = None
    description: Optional[str] = None
    categories: str = ""
    review_url: Optional[str] = None
    write_review_url: Optional[str] = None
    rating_score: float = 0.0
    rating_count: int = 0
    rating_histogram: Dict[int, int] = field(default_factory=dict)
    rating_histogram_previous: Dict[int, int] = field(default_factory=dict)
    reviews: Tuple[Review, ...] = ()


@dataclass(frozen=True, slots=True)
class DisambiguationCandidate:
    url: str
    name: str
    avatar_url: Optional[str] = None
    address: Optional[str] = None
    categories: Optional[str] = None


@dataclass(frozen=True, slots=True)
class ConnectedProfileRecord:
    """A place accepted by the host, stamped with the host's request id."""

    place: Place
    request_id: str
    connected_at: int

    @property
    def page_id(self) -> str:
        return self.place.page_id

    @property
    def name(self) -> str:
        return self.place.name


# ---------- Input classes ----------


@dataclass(frozen=True, slots=True)
class Empty:
    value: str = ""


@dataclass(frozen=True, slots=True)
class PlaceId:
    value: str


@dataclass(frozen=True, slots=True)
class MapsUrl:
    value: str


@dataclass(frozen=True, slots=True)
class ShoppingUrl:
    value: str


@dataclass(frozen=True, slots=True)
class Unrecognized:
    """Free text query, or a URL that is not a Google page when ``invalid_link`` is set."""

    value: str
    invalid_link: bool = False


InputClass = Union[Empty, PlaceId, MapsUrl, ShoppingUrl, Unrecognized]


# ---------- Resolve outcomes ----------


@dataclass(frozen=True, slots=True)
class Resolved:
    place: Place


@dataclass(frozen=True, slots=True)
class Candidates:
    items: Tuple[DisambiguationCandidate, ...]


@dataclass(frozen=True)
class NotFound:
    token: str


@dataclass(frozen=True)
class InvalidLink(NotFound):
    """Link looked like a Google page but no lookup token could be extracted."""


@dataclass(frozen=True, slots=True)
class TransportFailure:
    token: str
    reason: str


@dataclass(frozen=True, slots=True)
class Busy:
    """A lookup or connect is already in flight; the trigger was ignored."""


@dataclass(frozen=True, slots=True)
class Stale:
    """The response arrived for a token the operator has since replaced."""

    token: str


ResolveOutcome = Union[Resolved, Candidates, NotFound, TransportFailure]
SessionOutcome = Union[Resolved, Candidates, NotFound, TransportFailure, Busy, Stale]


# ---------- Finalize errors ----------

REJECTED = "rejected"
UNREACHABLE = "unreachable"


@dataclass(frozen=True, slots=True)
class FinalizeError:
    kind: str
    message: str = ""

    @property
    def retryable(self) -> bool:
        return self.kind == UNREACHABLE
