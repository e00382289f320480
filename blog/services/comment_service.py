"""
Comment service: comment CRUD independent of the article write path.

Comment text is trimmed and must not be blank.  Edits re-validate the
text and stamp ``updated_at``; the article and author of a comment
never change after creation.
"""
from sqlalchemy.ext.asyncio import AsyncSession

from blog.exceptions import NotFoundError
from blog.models import Comment, utcnow
from blog.repositories import article_repository, comment_repository, user_repository
from blog.schemas import CommentUpdate
from blog.services._helpers import require_text


async def create_comment(db: AsyncSession, text: str, article_id: int, author_id: int) -> Comment:
    """
    Create a comment by *author_id* on *article_id*.

    Raises ValidationError for blank text and NotFoundError when the
    article or the author does not exist.
    """
    text = require_text(text, "Comment text")

    if await article_repository.get_by_id(db, article_id) is None:
        raise NotFoundError("Article not found")
    if await user_repository.get_by_id(db, author_id) is None:
        raise NotFoundError("Author not found")

    comment = Comment(
        text=text,
        article_id=article_id,
        author_id=author_id,
        created_at=utcnow(),
    )
    return await comment_repository.add(db, comment)


async def get_comment(db: AsyncSession, comment_id: int) -> Comment:
    comment = await comment_repository.get_by_id(db, comment_id)
    if comment is None:
        raise NotFoundError("Comment not found")
    return comment


async def get_comments(db: AsyncSession) -> list[Comment]:
    return await comment_repository.get_all(db)


async def get_comments_by_article(db: AsyncSession, article_id: int) -> list[Comment]:
    return await comment_repository.get_by_article(db, article_id)


async def update_comment(db: AsyncSession, comment_id: int, data: CommentUpdate) -> Comment:
    comment = await get_comment(db, comment_id)
    comment.text = require_text(data.text, "Comment text")
    comment.updated_at = utcnow()
    return await comment_repository.update(db, comment)


async def delete_comment(db: AsyncSession, comment_id: int) -> None:
    comment = await get_comment(db, comment_id)
    await comment_repository.delete(db, comment)
