"""One operator's run of the profile connection workflow."""

from __future__ import annotations

import logging
from typing import Callable, Optional, Tuple, Union

from reviews_connect.models import (
    REJECTED,
    Busy,
    Candidates,
    ConnectedProfileRecord,
    DisambiguationCandidate,
    Empty,
    FinalizeError,
    NotFound,
    Place,
    Resolved,
    SessionOutcome,
    Stale,
    Unrecognized,
)
from reviews_connect.workflow.classifier import classify
from reviews_connect.workflow.finalizer import ConnectionFinalizer
from reviews_connect.workflow.resolver import PlaceResolver

logger = logging.getLogger(__name__)


class ConnectionSession:
    """Owns the lookup cache, the loading flag and the current selection for one operator.

    Every trigger runs at most one provider call. While a call is in flight further
    triggers return ``Busy``; the operator may keep typing, and an answer for a token
    that no longer matches the input is discarded as ``Stale``.
    """

    def __init__(self, resolver: PlaceResolver, finalizer: Optional[ConnectionFinalizer] = None) -> None:
        self.resolver = resolver
        self.finalizer = finalizer
        self.selected: Optional[Place] = None
        self.candidates: Tuple[DisambiguationCandidate, ...] = ()
        self.last_matched: Optional[str] = None
        self._input = ""
        self._loading = False

    @property
    def loading(self) -> bool:
        return self._loading

    @property
    def current_token(self) -> str:
        return self._input.strip()

    def type_input(self, text: str) -> None:
        self._input = text or ""

    def check_value(self, raw: Optional[str] = None) -> SessionOutcome:
        """Classify and resolve the current input (or ``raw`` when given)."""
        if raw is not None:
            self.type_input(raw)
        if self._loading:
            logger.debug("Ignoring lookup for %r while another is in flight", raw)
            return Busy()

        token = self.current_token
        input_class = classify(token)
        if isinstance(input_class, Empty):
            return NotFound("")
        if (
            isinstance(input_class, Unrecognized)
            and not input_class.invalid_link
            and self.selected is not None
            and token == self.last_matched
        ):
            return Resolved(self.selected)

        return self._run(token, lambda: self.resolver.resolve(input_class))

    def choose_candidate(self, candidate: Union[int, DisambiguationCandidate]) -> SessionOutcome:
        """Resolve one of the offered candidates; integers index ``self.candidates``."""
        if self._loading:
            return Busy()
        if isinstance(candidate, int):
            if not 0 <= candidate < len(self.candidates):
                logger.info("No candidate at index %d (%d offered)", candidate, len(self.candidates))
                return NotFound(self.current_token)
            candidate = self.candidates[candidate]
        return self._run(self.current_token, lambda: self.resolver.resolve_candidate(candidate))

    def select_autocomplete(self, place: Place, text: str) -> bool:
        """Accept a place picked from autocomplete suggestions for ``text``."""
        if not self.resolver.accept(place):
            return False
        self.type_input(text)
        self.selected = place
        self.candidates = ()
        self.last_matched = self.current_token
        return True

    def connect(self) -> Union[ConnectedProfileRecord, FinalizeError, Busy]:
        """Refresh the selected place from the provider and submit it to the host."""
        if self.finalizer is None:
            raise RuntimeError("session was created without a finalizer")
        if self._loading:
            return Busy()
        if self.selected is None:
            return FinalizeError(REJECTED, "no place selected")

        self._loading = True
        try:
            place = self.selected
            refreshed = self.resolver.lookup_page(place.page_id)
            if isinstance(refreshed, Resolved) and refreshed.place.page_id == place.page_id:
                place = refreshed.place
            return self.finalizer.finalize(place)
        finally:
            self._loading = False

    def _run(self, token: str, call: Callable[[], SessionOutcome]) -> SessionOutcome:
        self._loading = True
        try:
            outcome = call()
        finally:
            self._loading = False

        if token != self.current_token:
            logger.info("Discarding answer for %r; input is now %r", token, self.current_token)
            return Stale(token)

        if isinstance(outcome, Resolved):
            self.selected = outcome.place
            self.candidates = ()
        elif isinstance(outcome, Candidates):
            self.selected = None
            self.candidates = outcome.items
        return outcome
