from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import JSONResponse
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload

from turismo.core.deps import get_current_user
from turismo.core.errors import InvalidArgument, RatingError
from turismo.db.session import get_db
from turismo.models.ratings import PlaceRating
from turismo.models.users import User
from turismo.routers.places import get_place_or_404
from turismo.schemas.ratings import (
    AggregateResponse,
    RatingBucketResponse,
    RatingCreate,
    RatingDeleteResponse,
    RatingListResponse,
    RatingMutationResponse,
    RatingResponse,
    RatingStatsEnvelope,
    RatingStatsResponse,
    RatingUpdate,
    UserRatingResponse,
)
from turismo.services.ratings import RatingAggregate, apply_rating_change, get_statistics

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/ratings", tags=["ratings"])
place_router = APIRouter(prefix="/places/{place_id}", tags=["ratings"])


def _to_rating_response(r: PlaceRating) -> RatingResponse:
    return RatingResponse(
        id=r.id,
        user_id=r.user_id,
        place_id=r.place_id,
        rating=r.rating,
        username=r.user.username if r.user else None,
        place_name=r.place.name if r.place else None,
        created_at=r.created_at,
        updated_at=r.updated_at,
    )


def _to_aggregate_response(a: RatingAggregate) -> AggregateResponse:
    return AggregateResponse(average_rating=a.average_rating, total_ratings=a.total_ratings)


def _ratings_query():
    return select(PlaceRating).options(joinedload(PlaceRating.user), joinedload(PlaceRating.place))


def _commit_rating(db: Session, place_id: str) -> RatingAggregate:
    """Commit the pending rating change with the recomputed place aggregate."""
    try:
        return apply_rating_change(db, place_id=place_id)
    except RatingError:
        logger.exception("Rating change for place %s rolled back", place_id)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Internal server error")


def _owned_rating(db: Session, rating_id: str, current: User) -> PlaceRating:
    rating = db.get(PlaceRating, rating_id)
    if not rating:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Rating not found")
    if rating.user_id != current.id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Not allowed to modify this rating")
    return rating


def _find_user_rating(db: Session, *, user_id: str, place_id: str) -> PlaceRating | None:
    return db.scalar(select(PlaceRating).where(PlaceRating.user_id == user_id, PlaceRating.place_id == place_id))


def _insert_rating(db: Session, *, user_id: str, place_id: str, value: int) -> PlaceRating | None:
    """Add and flush a new rating; None when a concurrent request already inserted one."""
    rating = PlaceRating(user_id=user_id, place_id=place_id, rating=value)
    db.add(rating)
    try:
        db.flush()
    except IntegrityError:
        db.rollback()
        logger.info("Duplicate rating by %s for place %s", user_id, place_id)
        return None
    return rating


@router.get("", response_model=RatingListResponse)
def list_ratings(db: Session = Depends(get_db)) -> RatingListResponse:
    items = list(db.scalars(_ratings_query().order_by(PlaceRating.created_at.desc())).all())
    return RatingListResponse(items=[_to_rating_response(r) for r in items], total=len(items))


@router.get("/user/{user_id}", response_model=RatingListResponse)
def list_user_ratings(user_id: str, db: Session = Depends(get_db)) -> RatingListResponse:
    stmt = _ratings_query().where(PlaceRating.user_id == user_id).order_by(PlaceRating.created_at.desc())
    items = list(db.scalars(stmt).all())
    return RatingListResponse(items=[_to_rating_response(r) for r in items], total=len(items))


@router.get("/place/{place_id}", response_model=RatingListResponse)
def list_place_ratings(place_id: str, db: Session = Depends(get_db)) -> RatingListResponse:
    stmt = _ratings_query().where(PlaceRating.place_id == place_id).order_by(PlaceRating.created_at.desc())
    items = list(db.scalars(stmt).all())
    return RatingListResponse(items=[_to_rating_response(r) for r in items], total=len(items))


@router.get(
    "/stats/place/{place_id}",
    response_model=RatingStatsEnvelope,
    responses={400: {"description": "Invalid place id"}},
)
def place_rating_stats(place_id: str, db: Session = Depends(get_db)):
    try:
        stats = get_statistics(db, place_id=place_id)
    except InvalidArgument as e:
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"success": False, "message": str(e)})
    except RatingError:
        logger.exception("Rating statistics failed for place %s", place_id)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"success": False, "message": "Internal server error"},
        )

    return RatingStatsEnvelope(
        stats=RatingStatsResponse(
            average_rating=stats.average_rating,
            total_ratings=stats.total_ratings,
            rating_distribution=[RatingBucketResponse(rating=b.rating, count=b.count) for b in stats.rating_distribution],
        )
    )


@router.get("/{rating_id}", response_model=RatingResponse)
def get_rating(rating_id: str, db: Session = Depends(get_db)) -> RatingResponse:
    rating = db.scalar(_ratings_query().where(PlaceRating.id == rating_id))
    if not rating:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Rating not found")
    return _to_rating_response(rating)


@router.post("", response_model=RatingMutationResponse, status_code=201)
def create_rating(
    payload: RatingCreate,
    current: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> RatingMutationResponse:
    place = get_place_or_404(db, payload.place_id)
    if _find_user_rating(db, user_id=current.id, place_id=place.id):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="You have already rated this place")

    place_id = place.id
    rating = _insert_rating(db, user_id=current.id, place_id=place_id, value=payload.rating)
    if rating is None:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="You have already rated this place")
    aggregate = _commit_rating(db, place_id)
    db.refresh(rating)

    return RatingMutationResponse(
        message="Rating created", rating=_to_rating_response(rating), aggregate=_to_aggregate_response(aggregate)
    )


@router.put("/{rating_id}", response_model=RatingMutationResponse)
def update_rating(
    rating_id: str,
    payload: RatingUpdate,
    current: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> RatingMutationResponse:
    rating = _owned_rating(db, rating_id, current)
    rating.rating = payload.rating
    aggregate = _commit_rating(db, rating.place_id)
    db.refresh(rating)

    return RatingMutationResponse(
        message="Rating updated", rating=_to_rating_response(rating), aggregate=_to_aggregate_response(aggregate)
    )


@router.delete("/{rating_id}", response_model=RatingDeleteResponse)
def delete_rating(
    rating_id: str,
    current: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> RatingDeleteResponse:
    rating = _owned_rating(db, rating_id, current)
    place_id = rating.place_id
    db.delete(rating)
    aggregate = _commit_rating(db, place_id)
    return RatingDeleteResponse(message="Rating deleted", aggregate=_to_aggregate_response(aggregate))


@place_router.post("/rate", response_model=RatingMutationResponse)
def rate_place(
    place_id: str,
    payload: RatingUpdate,
    current: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> RatingMutationResponse:
    """Create the caller's rating of a place, or change it if one exists."""
    place_id = get_place_or_404(db, place_id).id
    user_id = current.id

    rating = _find_user_rating(db, user_id=user_id, place_id=place_id)
    message = "Rating updated"
    if rating is None:
        rating = _insert_rating(db, user_id=user_id, place_id=place_id, value=payload.rating)
        message = "Rating created"
    if rating is None:
        # Lost the insert race; the row is there now, so update it
        rating = _find_user_rating(db, user_id=user_id, place_id=place_id)
        message = "Rating updated"
    if rating is None:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Rating changed concurrently, try again")
    rating.rating = payload.rating

    aggregate = _commit_rating(db, place_id)
    db.refresh(rating)
    return RatingMutationResponse(
        message=message, rating=_to_rating_response(rating), aggregate=_to_aggregate_response(aggregate)
    )


@place_router.get("/user-rating", response_model=UserRatingResponse)
def get_user_rating(
    place_id: str,
    current: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> UserRatingResponse:
    place = get_place_or_404(db, place_id)
    rating = _find_user_rating(db, user_id=current.id, place_id=place.id)
    return UserRatingResponse(place_id=place.id, rating=rating.rating if rating else 0)
