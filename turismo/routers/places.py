from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, File, HTTPException, Query, UploadFile, status
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from turismo.core.deps import get_current_user
from turismo.db.session import get_db
from turismo.models.places import Place
from turismo.models.users import User
from turismo.schemas.places import PlaceCreate, PlaceFileResponse, PlaceListResponse, PlaceResponse, PlaceUpdate
from turismo.services.uploads import save_upload

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/places", tags=["places"])

_FILE_COLUMNS = {"image": "image_url", "pdf": "pdf_url"}


def to_place_response(place: Place) -> PlaceResponse:
    return PlaceResponse(
        id=place.id,
        name=place.name,
        description=place.description,
        image_url=place.image_url,
        pdf_url=place.pdf_url,
        location=place.location,
        category=place.category,
        average_rating=place.average_rating,
        total_ratings=place.total_ratings,
        created_at=place.created_at,
    )


def get_place_or_404(db: Session, place_id: str) -> Place:
    place = db.get(Place, place_id)
    if not place:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Place not found")
    return place


@router.get("", response_model=PlaceListResponse)
def list_places(
    db: Session = Depends(get_db),
    q: str | None = Query(default=None, max_length=200),
    category: str | None = Query(default=None, max_length=80),
    min_rating: float | None = Query(default=None, ge=0, le=5),
    limit: int = Query(default=50, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
) -> PlaceListResponse:
    stmt = select(Place)

    if q:
        stmt = stmt.where(func.lower(Place.name).like(f"%{q.lower()}%"))
    if category:
        stmt = stmt.where(Place.category == category.strip())
    if min_rating is not None:
        stmt = stmt.where(Place.average_rating >= min_rating)

    total = db.scalar(select(func.count()).select_from(stmt.subquery()))
    items = list(db.scalars(stmt.order_by(Place.created_at.desc(), Place.name).limit(limit).offset(offset)).all())
    return PlaceListResponse(items=[to_place_response(p) for p in items], total=int(total or 0))


@router.get("/category/{category}", response_model=PlaceListResponse)
def list_places_by_category(category: str, db: Session = Depends(get_db)) -> PlaceListResponse:
    items = list(db.scalars(select(Place).where(Place.category == category).order_by(Place.created_at.desc())).all())
    return PlaceListResponse(items=[to_place_response(p) for p in items], total=len(items))


@router.get("/{place_id}", response_model=PlaceResponse)
def get_place(place_id: str, db: Session = Depends(get_db)) -> PlaceResponse:
    return to_place_response(get_place_or_404(db, place_id))


@router.post("", response_model=PlaceResponse, status_code=201)
def create_place(
    payload: PlaceCreate,
    current: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> PlaceResponse:
    place = Place(**payload.model_dump())
    place.name = place.name.strip()
    db.add(place)
    db.commit()
    db.refresh(place)
    logger.info("Place %s created by %s", place.id, current.id)
    return to_place_response(place)


@router.put("/{place_id}", response_model=PlaceResponse)
def update_place(
    place_id: str,
    payload: PlaceUpdate,
    current: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> PlaceResponse:
    place = get_place_or_404(db, place_id)

    for key, value in payload.model_dump(exclude_unset=True).items():
        if value is not None:
            setattr(place, key, value)

    db.commit()
    db.refresh(place)
    return to_place_response(place)


@router.delete("/{place_id}", status_code=204)
def delete_place(
    place_id: str,
    current: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> None:
    place = get_place_or_404(db, place_id)
    db.delete(place)
    db.commit()
    logger.info("Place %s deleted by %s", place_id, current.id)


def _store_place_file(db: Session, place_id: str, upload: UploadFile, *, file_type: str) -> PlaceFileResponse:
    place = get_place_or_404(db, place_id)
    url, _ = save_upload(upload, prefix="place", allow_pdf=file_type == "pdf")
    setattr(place, _FILE_COLUMNS[file_type], url)
    db.commit()
    db.refresh(place)
    return PlaceFileResponse(message=f"{file_type.upper()} uploaded", url=url, place=to_place_response(place))


@router.post("/{place_id}/upload-image", response_model=PlaceFileResponse)
def upload_place_image(
    place_id: str,
    file: UploadFile = File(...),
    current: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> PlaceFileResponse:
    return _store_place_file(db, place_id, file, file_type="image")


@router.post("/{place_id}/upload-pdf", response_model=PlaceFileResponse)
def upload_place_pdf(
    place_id: str,
    file: UploadFile = File(...),
    current: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> PlaceFileResponse:
    if (file.content_type or "").lower() != "application/pdf":
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Only PDF files are allowed")
    return _store_place_file(db, place_id, file, file_type="pdf")


@router.delete("/{place_id}/files/{file_type}", response_model=PlaceFileResponse)
def delete_place_file(
    place_id: str,
    file_type: str,
    current: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> PlaceFileResponse:
    if file_type not in _FILE_COLUMNS:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid file type")

    place = get_place_or_404(db, place_id)
    setattr(place, _FILE_COLUMNS[file_type], None)
    db.commit()
    db.refresh(place)
    return PlaceFileResponse(message=f"{file_type.upper()} removed", url=None, place=to_place_response(place))
