from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, File, Form, HTTPException, Request, UploadFile, status
from fastapi.responses import JSONResponse
from sqlalchemy import select
from sqlalchemy.orm import Session, joinedload

from turismo.core.deps import get_current_user
from turismo.db.session import get_db
from turismo.models.photos import PhotoReaction, UserPhoto
from turismo.models.places import Place
from turismo.models.users import User
from turismo.routers.reactions import reaction_counts, to_photo_reaction_response
from turismo.schemas.photos import PhotoListResponse, PhotoReactionCreate, PhotoResponse, PhotoUpdate
from turismo.schemas.reactions import ReactionCountResponse, ReactionListResponse, ReactionToggleResponse
from turismo.services.uploads import absolute_url, remove_stored_file, save_upload

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/photos", tags=["photos"])


def _to_photo_response(request: Request, p: UserPhoto) -> PhotoResponse:
    return PhotoResponse(
        id=p.id,
        user_id=p.user_id,
        photo_url=absolute_url(request, p.photo_url) or "",
        caption=p.caption,
        place_id=p.place_id,
        username=p.user.username if p.user else None,
        place_name=p.place.name if p.place else None,
        created_at=p.created_at,
    )


def _photo_list(request: Request, db: Session, *criteria) -> PhotoListResponse:
    photos = list(
        db.scalars(
            select(UserPhoto)
            .options(joinedload(UserPhoto.user), joinedload(UserPhoto.place))
            .where(*criteria)
            .order_by(UserPhoto.created_at.desc())
        ).all()
    )
    return PhotoListResponse(items=[_to_photo_response(request, p) for p in photos], total=len(photos))


def _get_photo_or_404(db: Session, photo_id: str) -> UserPhoto:
    photo = db.get(UserPhoto, photo_id)
    if not photo:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Photo not found")
    return photo


def _owned_photo(db: Session, photo_id: str, current: User) -> UserPhoto:
    photo = _get_photo_or_404(db, photo_id)
    if photo.user_id != current.id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Not allowed to modify this photo")
    return photo


def _check_place(db: Session, place_id: str | None) -> None:
    if place_id and not db.get(Place, place_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Place not found")


@router.get("", response_model=PhotoListResponse)
def list_photos(request: Request, db: Session = Depends(get_db)) -> PhotoListResponse:
    return _photo_list(request, db)


@router.get("/user/{user_id}", response_model=PhotoListResponse)
def list_user_photos(user_id: str, request: Request, db: Session = Depends(get_db)) -> PhotoListResponse:
    return _photo_list(request, db, UserPhoto.user_id == user_id)


@router.get("/place/{place_id}", response_model=PhotoListResponse)
def list_place_photos(place_id: str, request: Request, db: Session = Depends(get_db)) -> PhotoListResponse:
    return _photo_list(request, db, UserPhoto.place_id == place_id)


@router.get("/{photo_id}", response_model=PhotoResponse)
def get_photo(photo_id: str, request: Request, db: Session = Depends(get_db)) -> PhotoResponse:
    return _to_photo_response(request, _get_photo_or_404(db, photo_id))


@router.post("", response_model=PhotoResponse, status_code=201)
def create_photo(
    request: Request,
    photo: UploadFile = File(...),
    caption: str | None = Form(default=None, max_length=500),
    place_id: str | None = Form(default=None, max_length=36),
    current: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> PhotoResponse:
    place_id = place_id or None
    _check_place(db, place_id)

    photo_url, storage_path = save_upload(photo, prefix="photo")
    record = UserPhoto(
        user_id=current.id,
        photo_url=photo_url,
        caption=(caption or "").strip() or None,
        place_id=place_id,
        storage_path=storage_path,
    )
    db.add(record)
    db.commit()
    db.refresh(record)
    return _to_photo_response(request, record)


@router.put("/{photo_id}", response_model=PhotoResponse)
def update_photo(
    photo_id: str,
    payload: PhotoUpdate,
    request: Request,
    current: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> PhotoResponse:
    photo = _owned_photo(db, photo_id, current)
    if payload.caption is not None:
        photo.caption = payload.caption.strip() or None
    if payload.place_id is not None:
        _check_place(db, payload.place_id)
        photo.place_id = payload.place_id
    db.commit()
    db.refresh(photo)
    return _to_photo_response(request, photo)


@router.delete("/{photo_id}", status_code=204)
def delete_photo(
    photo_id: str,
    current: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> None:
    photo = _owned_photo(db, photo_id, current)
    storage_path = photo.storage_path
    db.delete(photo)
    db.commit()
    remove_stored_file(storage_path)


@router.get("/{photo_id}/reactions", response_model=ReactionListResponse)
def list_photo_reactions(photo_id: str, db: Session = Depends(get_db)) -> ReactionListResponse:
    reactions = list(
        db.scalars(
            select(PhotoReaction)
            .options(joinedload(PhotoReaction.user))
            .where(PhotoReaction.photo_id == photo_id)
            .order_by(PhotoReaction.created_at.desc())
        ).all()
    )
    return ReactionListResponse(items=[to_photo_reaction_response(r) for r in reactions], total=len(reactions))


@router.post("/{photo_id}/reactions", response_model=ReactionToggleResponse, status_code=201)
def toggle_photo_reaction(
    photo_id: str,
    payload: PhotoReactionCreate,
    current: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Add the caller's reaction, or remove it when one already exists."""
    photo = _get_photo_or_404(db, photo_id)

    existing = db.scalar(
        select(PhotoReaction).where(PhotoReaction.photo_id == photo.id, PhotoReaction.user_id == current.id)
    )
    if existing:
        removed = to_photo_reaction_response(existing)
        db.delete(existing)
        db.commit()
        body = ReactionToggleResponse(message="Reaction removed", action="removed", reaction=removed)
        return JSONResponse(status_code=status.HTTP_200_OK, content=body.model_dump(mode="json"))

    reaction = PhotoReaction(user_id=current.id, photo_id=photo.id, reaction_type=payload.reaction_type.value)
    db.add(reaction)
    db.commit()
    db.refresh(reaction)
    return ReactionToggleResponse(message="Reaction added", action="added", reaction=to_photo_reaction_response(reaction))


@router.delete("/{photo_id}/reaction", status_code=204)
def remove_my_photo_reaction(
    photo_id: str,
    current: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> None:
    reaction = db.scalar(
        select(PhotoReaction).where(PhotoReaction.photo_id == photo_id, PhotoReaction.user_id == current.id)
    )
    if not reaction:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Reaction not found")
    db.delete(reaction)
    db.commit()


@router.get("/{photo_id}/reaction-count", response_model=ReactionCountResponse)
def photo_reaction_count(photo_id: str, db: Session = Depends(get_db)) -> ReactionCountResponse:
    return reaction_counts(db, PhotoReaction, PhotoReaction.photo_id == photo_id)
