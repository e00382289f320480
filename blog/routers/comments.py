from fastapi import APIRouter

from blog.audit import audit
from blog.cache import cache
from blog.dependencies import CommentEditor, CurrentPrincipal, DbSession, StaffPrincipal
from blog.schemas import CommentCreate, CommentResponse, CommentUpdate
from blog.services import comment_service

router = APIRouter(prefix="/api/v1/comments", tags=["comments"])


@router.get("", response_model=list[CommentResponse])
async def list_comments(principal: StaffPrincipal, db: DbSession):
    return await comment_service.get_comments(db)


@router.get("/{comment_id}", response_model=CommentResponse)
async def get_comment(comment_id: int, db: DbSession):
    return await comment_service.get_comment(db, comment_id)


@router.post("", status_code=201, response_model=CommentResponse)
async def create_comment(data: CommentCreate, principal: CurrentPrincipal, db: DbSession):
    comment = await comment_service.create_comment(
        db, data.text, data.article_id, principal.user_id
    )
    await cache.invalidate_article(comment.article_id)
    audit.log_user_action(
        "COMMENT_CREATE", f"Commented on article ID: {comment.article_id}",
        principal.user_id, principal.name,
    )
    return comment


@router.put("/{comment_id}", response_model=CommentResponse)
async def update_comment(
    comment_id: int, data: CommentUpdate, principal: CommentEditor, db: DbSession
):
    comment = await comment_service.update_comment(db, comment_id, data)
    await cache.invalidate_article(comment.article_id)
    audit.log_user_action(
        "COMMENT_EDIT", f"Edited comment ID: {comment_id}", principal.user_id, principal.name
    )
    return comment


@router.delete("/{comment_id}", status_code=204)
async def delete_comment(comment_id: int, principal: CommentEditor, db: DbSession):
    comment = await comment_service.get_comment(db, comment_id)
    article_id = comment.article_id
    await comment_service.delete_comment(db, comment_id)
    await cache.invalidate_article(article_id)
    audit.log_user_action(
        "COMMENT_DELETE", f"Deleted comment ID: {comment_id}", principal.user_id, principal.name
    )
