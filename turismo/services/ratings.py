"""Rating aggregation for places.

``places.average_rating`` and ``places.total_ratings`` are a cached view over
``place_ratings``. Every rating mutation recomputes them from scratch inside the
same transaction as the mutation, so a stale value heals on the next write.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal

from sqlalchemy import func, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from turismo.core.errors import InvalidArgument, NotFound, RatingError, StoreFailure
from turismo.models.places import Place
from turismo.models.ratings import PlaceRating

logger = logging.getLogger(__name__)

RATING_VALUES = (5, 4, 3, 2, 1)

_ONE_DECIMAL = Decimal("0.1")


@dataclass(frozen=True)
class RatingAggregate:
    average_rating: float
    total_ratings: int


@dataclass(frozen=True)
class RatingBucket:
    rating: int
    count: int


@dataclass(frozen=True)
class RatingStatistics:
    average_rating: float
    total_ratings: int
    rating_distribution: list[RatingBucket] = field(default_factory=list)


def round_rating(total: int, count: int) -> float:
    """Mean of ``count`` ratings summing to ``total``, half-up to one decimal."""
    if not count:
        return 0.0
    mean = Decimal(int(total)) / Decimal(int(count))
    return float(mean.quantize(_ONE_DECIMAL, rounding=ROUND_HALF_UP))


def validate_place_id(place_id: object) -> str:
    if not isinstance(place_id, str) or not place_id.strip():
        raise InvalidArgument("Place id is required")
    try:
        return str(uuid.UUID(place_id.strip()))
    except ValueError:
        raise InvalidArgument(f"Malformed place id: {place_id!r}") from None


def recompute_aggregate(db: Session, *, place_id: str) -> RatingAggregate:
    """Recompute and store the cached rating aggregate of one place.

    Flushes pending changes so the read sees them, then issues a single UPDATE
    against ``places``. Does not commit: the caller owns the transaction.
    """
    place_id = validate_place_id(place_id)

    try:
        db.flush()
        total, count = db.execute(
            select(func.coalesce(func.sum(PlaceRating.rating), 0), func.count(PlaceRating.id)).where(
                PlaceRating.place_id == place_id
            )
        ).one()

        aggregate = RatingAggregate(average_rating=round_rating(total, count), total_ratings=int(count))

        res = db.execute(
            update(Place)
            .where(Place.id == place_id)
            .values(average_rating=aggregate.average_rating, total_ratings=aggregate.total_ratings)
        )
    except SQLAlchemyError as e:
        raise StoreFailure(f"Could not recompute rating for place {place_id}") from e

    if res.rowcount == 0:
        raise NotFound(f"Place {place_id} does not exist")

    logger.debug("Place %s aggregate -> %s (%s ratings)", place_id, aggregate.average_rating, aggregate.total_ratings)
    return aggregate


def get_statistics(db: Session, *, place_id: str) -> RatingStatistics:
    """Average, count and 5..1 histogram of a place's ratings. Read only.

    A place with no ratings, including one that does not exist, gets zeros.
    """
    place_id = validate_place_id(place_id)

    try:
        rows = db.execute(
            select(PlaceRating.rating, func.count(PlaceRating.id))
            .where(PlaceRating.place_id == place_id)
            .group_by(PlaceRating.rating)
        ).all()
    except SQLAlchemyError as e:
        raise StoreFailure(f"Could not read ratings for place {place_id}") from e

    counts = {int(rating): int(cnt) for rating, cnt in rows}
    total_ratings = sum(counts.values())
    rating_sum = sum(rating * cnt for rating, cnt in counts.items())

    return RatingStatistics(
        average_rating=round_rating(rating_sum, total_ratings),
        total_ratings=total_ratings,
        rating_distribution=[RatingBucket(rating=v, count=counts.get(v, 0)) for v in RATING_VALUES],
    )


def apply_rating_change(db: Session, *, place_id: str) -> RatingAggregate:
    """Commit a pending rating change together with the place's new aggregate.

    Either both the rating row change and the aggregate are committed, or the
    session is rolled back and the error re-raised.
    """
    try:
        aggregate = recompute_aggregate(db, place_id=place_id)
        db.commit()
    except RatingError:
        db.rollback()
        raise
    except SQLAlchemyError as e:
        db.rollback()
        raise StoreFailure(f"Could not save rating for place {place_id}") from e
    return aggregate


def recalculate_all(db: Session) -> int:
    """Recompute the aggregate of every place; returns how many were processed."""
    place_ids = list(db.scalars(select(Place.id)).all())
    try:
        for place_id in place_ids:
            recompute_aggregate(db, place_id=place_id)
        db.commit()
    except (RatingError, SQLAlchemyError):
        db.rollback()
        raise

    logger.info("Recalculated rating aggregates for %s places", len(place_ids))
    return len(place_ids)
