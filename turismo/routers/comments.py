from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import func, select
from sqlalchemy.orm import Session, joinedload

from turismo.core.deps import get_current_user, get_optional_user
from turismo.db.session import get_db
from turismo.models.comments import Comment, CommentReaction
from turismo.models.places import Place
from turismo.models.users import User
from turismo.routers.reactions import to_comment_reaction_response, reaction_counts
from turismo.schemas.comments import (
    CommentCreate,
    CommentListResponse,
    CommentReactionCreate,
    CommentResponse,
    CommentUpdate,
)
from turismo.schemas.reactions import ReactionCountResponse, ReactionListResponse, ReactionResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/comments", tags=["comments"])


def _to_comment_response(c: Comment, *, reaction_count: int = 0, user_has_reacted: bool = False) -> CommentResponse:
    return CommentResponse(
        id=c.id,
        user_id=c.user_id,
        place_id=c.place_id,
        parent_comment_id=c.parent_comment_id,
        content=c.content,
        username=c.user.username if c.user else None,
        avatar_url=c.user.avatar_url if c.user else None,
        place_name=c.place.name if c.place else None,
        reaction_count=reaction_count,
        user_has_reacted=user_has_reacted,
        created_at=c.created_at,
        updated_at=c.updated_at,
    )


def _comment_list(db: Session, stmt, viewer: User | None = None) -> CommentListResponse:
    comments = list(
        db.scalars(
            stmt.options(joinedload(Comment.user), joinedload(Comment.place)).order_by(Comment.created_at.desc())
        ).all()
    )
    ids = [c.id for c in comments]

    counts: dict[str, int] = {}
    reacted: set[str] = set()
    if ids:
        counts = dict(
            db.execute(
                select(CommentReaction.comment_id, func.count(CommentReaction.id))
                .where(CommentReaction.comment_id.in_(ids))
                .group_by(CommentReaction.comment_id)
            ).all()
        )
        if viewer:
            reacted = set(
                db.scalars(
                    select(CommentReaction.comment_id).where(
                        CommentReaction.comment_id.in_(ids), CommentReaction.user_id == viewer.id
                    )
                ).all()
            )

    items = [
        _to_comment_response(c, reaction_count=int(counts.get(c.id, 0)), user_has_reacted=c.id in reacted)
        for c in comments
    ]
    return CommentListResponse(items=items, total=len(items))


def _get_comment_or_404(db: Session, comment_id: str) -> Comment:
    comment = db.get(Comment, comment_id)
    if not comment:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Comment not found")
    return comment


def _owned_comment(db: Session, comment_id: str, current: User) -> Comment:
    comment = _get_comment_or_404(db, comment_id)
    if comment.user_id != current.id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Not allowed to modify this comment")
    return comment


@router.get("", response_model=CommentListResponse)
def list_comments(
    viewer: User | None = Depends(get_optional_user),
    db: Session = Depends(get_db),
) -> CommentListResponse:
    return _comment_list(db, select(Comment), viewer)


@router.get("/place/{place_id}", response_model=CommentListResponse)
def list_place_comments(
    place_id: str,
    viewer: User | None = Depends(get_optional_user),
    db: Session = Depends(get_db),
) -> CommentListResponse:
    return _comment_list(db, select(Comment).where(Comment.place_id == place_id), viewer)


@router.get("/user/{user_id}", response_model=CommentListResponse)
def list_user_comments(
    user_id: str,
    viewer: User | None = Depends(get_optional_user),
    db: Session = Depends(get_db),
) -> CommentListResponse:
    return _comment_list(db, select(Comment).where(Comment.user_id == user_id), viewer)


@router.get("/{comment_id}", response_model=CommentResponse)
def get_comment(comment_id: str, db: Session = Depends(get_db)) -> CommentResponse:
    comment = _get_comment_or_404(db, comment_id)
    count = db.scalar(select(func.count(CommentReaction.id)).where(CommentReaction.comment_id == comment.id)) or 0
    return _to_comment_response(comment, reaction_count=int(count))


@router.post("", response_model=CommentResponse, status_code=201)
def create_comment(
    payload: CommentCreate,
    current: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> CommentResponse:
    content = payload.content.strip()
    if not content:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Content is required")

    if payload.place_id and not db.get(Place, payload.place_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Place not found")

    place_id = payload.place_id
    if payload.parent_comment_id:
        parent = _get_comment_or_404(db, payload.parent_comment_id)
        # A reply always belongs to its parent's place
        place_id = place_id or parent.place_id

    comment = Comment(
        user_id=current.id,
        place_id=place_id,
        content=content,
        parent_comment_id=payload.parent_comment_id,
    )
    db.add(comment)
    db.commit()
    db.refresh(comment)
    return _to_comment_response(comment)


@router.put("/{comment_id}", response_model=CommentResponse)
def update_comment(
    comment_id: str,
    payload: CommentUpdate,
    current: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> CommentResponse:
    comment = _owned_comment(db, comment_id, current)
    comment.content = payload.content.strip()
    db.commit()
    db.refresh(comment)
    return _to_comment_response(comment)


@router.delete("/{comment_id}", status_code=204)
def delete_comment(
    comment_id: str,
    current: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> None:
    comment = _owned_comment(db, comment_id, current)
    db.delete(comment)
    db.commit()
    logger.info("Comment %s deleted by %s", comment_id, current.id)


@router.get("/{comment_id}/reactions", response_model=ReactionListResponse)
def list_comment_reactions(comment_id: str, db: Session = Depends(get_db)) -> ReactionListResponse:
    reactions = list(
        db.scalars(
            select(CommentReaction)
            .options(joinedload(CommentReaction.user))
            .where(CommentReaction.comment_id == comment_id)
            .order_by(CommentReaction.created_at.desc())
        ).all()
    )
    return ReactionListResponse(items=[to_comment_reaction_response(r) for r in reactions], total=len(reactions))


@router.post("/{comment_id}/reactions", response_model=ReactionResponse, status_code=201)
def add_comment_reaction(
    comment_id: str,
    payload: CommentReactionCreate,
    current: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> ReactionResponse:
    comment = _get_comment_or_404(db, comment_id)

    existing = db.scalar(
        select(CommentReaction).where(CommentReaction.comment_id == comment.id, CommentReaction.user_id == current.id)
    )
    if existing:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="You have already reacted to this comment")

    reaction = CommentReaction(user_id=current.id, comment_id=comment.id, reaction_type=payload.reaction_type.value)
    db.add(reaction)
    db.commit()
    db.refresh(reaction)
    return to_comment_reaction_response(reaction)


@router.get("/{comment_id}/reaction-count", response_model=ReactionCountResponse)
def comment_reaction_count(comment_id: str, db: Session = Depends(get_db)) -> ReactionCountResponse:
    return reaction_counts(db, CommentReaction, CommentReaction.comment_id == comment_id)


@router.delete("/{comment_id}/reaction", status_code=204)
def remove_my_comment_reaction(
    comment_id: str,
    current: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> None:
    reaction = db.scalar(
        select(CommentReaction).where(CommentReaction.comment_id == comment_id, CommentReaction.user_id == current.id)
    )
    if not reaction:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Reaction not found")
    db.delete(reaction)
    db.commit()
