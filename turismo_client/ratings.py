"""Optimistic star-rating submission.

Each place moves through IDLE -> SUBMITTING -> SETTLED. The clicked value is
shown immediately; a failed request restores the last settled value. Only one
submission per place is in flight at a time, further clicks are dropped.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from threading import Lock
from typing import Any, Callable, Optional

from turismo_client.api import APIError, TurismoAPI

logger = logging.getLogger(__name__)


class SubmissionState(str, Enum):
    idle = "idle"
    submitting = "submitting"
    settled = "settled"


@dataclass
class PlaceRatingState:
    state: SubmissionState = SubmissionState.idle
    settled_rating: Optional[int] = None
    displayed_rating: int = 0


class RatingSubmitter:
    def __init__(
        self,
        api: TurismoAPI,
        *,
        on_error: Optional[Callable[[str], None]] = None,
    ) -> None:
        self.api = api
        self.on_error = on_error
        self.places: list[dict] = []
        self.stats: dict[str, Any] = {}
        self._lock = Lock()
        self._states: dict[str, PlaceRatingState] = {}

    def state_of(self, place_id: str) -> PlaceRatingState:
        with self._lock:
            st = self._states.setdefault(place_id, PlaceRatingState())
            return PlaceRatingState(st.state, st.settled_rating, st.displayed_rating)

    def is_rating(self, place_id: str) -> bool:
        return self.state_of(place_id).state is SubmissionState.submitting

    def displayed_rating(self, place_id: str) -> int:
        return self.state_of(place_id).displayed_rating

    def load_user_rating(self, place_id: str) -> int:
        """Seed the settled value from the server (0 when not rated yet)."""
        try:
            rating = self.api.user_rating(place_id)
        except APIError as e:
            logger.warning("Could not load rating for place %s: %s", place_id, e)
            return 0

        with self._lock:
            st = self._states.setdefault(place_id, PlaceRatingState())
            if st.state is not SubmissionState.submitting and rating:
                st.state = SubmissionState.settled
                st.settled_rating = rating
                st.displayed_rating = rating
        return rating

    def submit(self, place_id: str, rating: int) -> bool:
        if not 1 <= int(rating) <= 5:
            raise ValueError("rating must be between 1 and 5")

        if not self.api.token_getter():
            self._report("You must sign in to rate places")
            return False

        with self._lock:
            st = self._states.setdefault(place_id, PlaceRatingState())
            if st.state is SubmissionState.submitting:
                return False
            previous = st.settled_rating
            st.state = SubmissionState.submitting
            st.displayed_rating = rating

        try:
            self.api.rate_place(place_id, rating)
        except APIError as e:
            with self._lock:
                st.state = SubmissionState.settled if previous is not None else SubmissionState.idle
                st.displayed_rating = previous or 0
            self._report(e.message or "Could not rate the place")
            return False

        with self._lock:
            st.state = SubmissionState.settled
            st.settled_rating = rating

        self.refresh(place_id)
        return True

    def refresh(self, place_id: str) -> None:
        """Reload the place list and this place's statistics."""
        try:
            payload = self.api.places()
            self.places = payload.get("items", []) if isinstance(payload, dict) else []
            self.stats[place_id] = self.api.rating_stats(place_id)
        except APIError as e:
            self._report(f"Could not refresh places: {e.message}")

    def _report(self, message: str) -> None:
        logger.info("Rating error: %s", message)
        if self.on_error:
            self.on_error(message)
