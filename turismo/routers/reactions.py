from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from turismo.core.deps import get_current_user
from turismo.db.session import get_db
from turismo.models.comments import CommentReaction
from turismo.models.photos import PhotoReaction
from turismo.models.users import User
from turismo.schemas.reactions import ReactionCountResponse, ReactionResponse, ReactionTypeCount

router = APIRouter(prefix="/reactions", tags=["reactions"])


def to_comment_reaction_response(r: CommentReaction) -> ReactionResponse:
    return ReactionResponse(
        id=r.id,
        user_id=r.user_id,
        target_id=r.comment_id,
        reaction_type=r.reaction_type,
        username=r.user.username if r.user else None,
        created_at=r.created_at,
    )


def to_photo_reaction_response(r: PhotoReaction) -> ReactionResponse:
    return ReactionResponse(
        id=r.id,
        user_id=r.user_id,
        target_id=r.photo_id,
        reaction_type=r.reaction_type,
        username=r.user.username if r.user else None,
        created_at=r.created_at,
    )


def reaction_counts(db: Session, model, *criteria) -> ReactionCountResponse:
    """Per-type reaction counts for one comment or photo."""
    rows = db.execute(
        select(model.reaction_type, func.count(model.id))
        .where(*criteria)
        .group_by(model.reaction_type)
        .order_by(model.reaction_type)
    ).all()
    counts = [ReactionTypeCount(reaction_type=t, count=int(c)) for t, c in rows]
    return ReactionCountResponse(counts=counts, total=sum(c.count for c in counts))


def _delete_owned(db: Session, model, reaction_id: str, current: User) -> None:
    reaction = db.get(model, reaction_id)
    if not reaction:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Reaction not found")
    if reaction.user_id != current.id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Not allowed to remove this reaction")
    db.delete(reaction)
    db.commit()


@router.delete("/comments/id/{reaction_id}", status_code=204)
def remove_comment_reaction(
    reaction_id: str,
    current: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> None:
    _delete_owned(db, CommentReaction, reaction_id, current)


@router.delete("/photos/{reaction_id}", status_code=204)
def remove_photo_reaction(
    reaction_id: str,
    current: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> None:
    _delete_owned(db, PhotoReaction, reaction_id, current)
