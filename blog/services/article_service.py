"""
Article service: business logic for the Article aggregate.

Design notes
------------
- Tags are resolved by exact name with get-or-create semantics: writing
  an article tagged ``["a", "b"]`` after one tagged ``["a", "c"]``
  reuses the stored ``a`` tag.  The lookup-then-insert runs inside a
  SAVEPOINT and retries on IntegrityError, so concurrent writers never
  duplicate a tag name.
- Listings are always newest-first by creation time.
- Deleting an article deletes its comments and unlinks its tags.
- Service functions flush but do not commit; the transaction boundary
  is owned by the ``get_db`` dependency in the router layer.
"""
import logging

from sqlalchemy.ext.asyncio import AsyncSession

from blog.exceptions import NotFoundError
from blog.models import SUMMARY_MAX_LENGTH, TITLE_MAX_LENGTH, Article, Comment, utcnow
from blog.repositories import article_repository, user_repository
from blog.schemas import ArticleUpdate
from blog.services import comment_service
from blog.services._helpers import require_text
from blog.services.tag_service import resolve_tags

logger = logging.getLogger(__name__)


def _clean_fields(title: str, summary: str, content: str) -> tuple[str, str, str]:
    return (
        require_text(title, "Title", TITLE_MAX_LENGTH),
        require_text(summary, "Summary", SUMMARY_MAX_LENGTH),
        require_text(content, "Content"),
    )


# ---------------------------------------------------------------------------
# Public service functions
# ---------------------------------------------------------------------------

async def create_article(
    db: AsyncSession,
    title: str,
    summary: str,
    content: str,
    author_id: int,
    tag_names: list[str] | None = None,
) -> Article:
    """
    Create a new article by *author_id* and return it with its tags.

    Raises NotFoundError when the author does not exist and
    ValidationError for blank or over-long fields.
    """
    title, summary, content = _clean_fields(title, summary, content)
    if await user_repository.get_by_id(db, author_id) is None:
        raise NotFoundError("Author not found")

    tags = await resolve_tags(db, tag_names)
    article = Article(
        title=title,
        summary=summary,
        content=content,
        author_id=author_id,
        created_at=utcnow(),
        tags=tags,
    )
    await article_repository.add(db, article)
    logger.info("Article created", extra={"article_id": article.id, "author_id": author_id})
    return article


async def get_article(db: AsyncSession, article_id: int) -> Article:
    article = await article_repository.get_by_id(db, article_id)
    if article is None:
        raise NotFoundError("Article not found")
    return article


async def get_articles(db: AsyncSession) -> list[Article]:
    return await article_repository.get_all(db)


async def get_articles_by_author(db: AsyncSession, author_id: int) -> list[Article]:
    return await article_repository.get_by_author(db, author_id)


async def get_articles_by_tag(db: AsyncSession, tag_name: str) -> list[Article]:
    """Return the articles whose tag set contains exactly *tag_name*."""
    return await article_repository.get_by_tag(db, (tag_name or "").strip())


async def get_articles_by_author_and_tag(db: AsyncSession, author_id: int, tag_name: str) -> list[Article]:
    return await article_repository.get_by_author_and_tag(db, author_id, (tag_name or "").strip())


async def update_article(db: AsyncSession, article_id: int, data: ArticleUpdate) -> Article:
    """
    Replace the mutable fields of *article_id* and stamp ``updated_at``.

    Title, summary and content are always replaced.  The tag set is
    replaced only when ``data.tags`` is not None; an empty list clears it.
    """
    article = await get_article(db, article_id)
    title, summary, content = _clean_fields(data.title, data.summary, data.content)
    if data.tags is not None:
        article.tags = await resolve_tags(db, data.tags)
    article.title, article.summary, article.content = title, summary, content
    article.updated_at = utcnow()
    return await article_repository.update(db, article)


async def delete_article(db: AsyncSession, article_id: int) -> None:
    article = await get_article(db, article_id)
    await article_repository.delete(db, article)
    logger.info("Article deleted", extra={"article_id": article_id})


async def add_comment(db: AsyncSession, article_id: int, text: str, author_id: int) -> Comment:
    """
    Attach a new comment by *author_id* to *article_id*.

    Raises NotFoundError when the article or author does not exist and
    ValidationError when *text* is blank.
    """
    comment = await comment_service.create_comment(db, text, article_id, author_id)
    logger.info("Comment added", extra={"article_id": article_id, "comment_id": comment.id})
    return comment
