from fastapi import APIRouter, Query
from sqlalchemy.ext.asyncio import AsyncSession

from blog.audit import audit
from blog.cache import (
    ARTICLE_LIST_ALL,
    article_detail_key,
    article_list_by_author_and_tag_key,
    article_list_by_author_key,
    article_list_by_tag_key,
    cache,
)
from blog.config import settings
from blog.dependencies import ArticleEditor, CurrentPrincipal, DbSession
from blog.models import Article
from blog.schemas import (
    ArticleCommentCreate,
    ArticleCreate,
    ArticleDetail,
    ArticleResponse,
    ArticleUpdate,
    CommentResponse,
)
from blog.services import article_service, comment_service

router = APIRouter(prefix="/api/v1/articles", tags=["articles"])


async def _detail_payload(db: AsyncSession, article: Article) -> dict:
    comments = await comment_service.get_comments_by_article(db, article.id)
    detail = ArticleDetail(
        **ArticleResponse.model_validate(article).model_dump(),
        content=article.content,
        comments=[CommentResponse.model_validate(c) for c in comments],
    )
    return detail.model_dump(mode="json")


@router.get("", response_model=list[ArticleResponse])
async def list_articles(
    db: DbSession,
    tag: str | None = Query(None, description="Only articles carrying this exact tag name."),
    author_id: int | None = Query(None, description="Only articles written by this user."),
):
    if tag is not None and author_id is not None:
        key = article_list_by_author_and_tag_key(author_id, tag)
    elif tag is not None:
        key = article_list_by_tag_key(tag)
    elif author_id is not None:
        key = article_list_by_author_key(author_id)
    else:
        key = ARTICLE_LIST_ALL

    cached = await cache.get(key)
    if cached is not None:
        return cached

    if tag is not None and author_id is not None:
        articles = await article_service.get_articles_by_author_and_tag(db, author_id, tag)
    elif tag is not None:
        articles = await article_service.get_articles_by_tag(db, tag)
    elif author_id is not None:
        articles = await article_service.get_articles_by_author(db, author_id)
    else:
        articles = await article_service.get_articles(db)

    payload = [ArticleResponse.model_validate(a).model_dump(mode="json") for a in articles]
    await cache.set(key, payload, ttl=settings.CACHE_TTL_LIST)
    return payload


@router.get("/{article_id}", response_model=ArticleDetail)
async def get_article(article_id: int, db: DbSession):
    key = article_detail_key(article_id)
    cached = await cache.get(key)
    if cached is not None:
        return cached

    article = await article_service.get_article(db, article_id)
    payload = await _detail_payload(db, article)
    await cache.set(key, payload, ttl=settings.CACHE_TTL_DETAIL)
    return payload


@router.post("", status_code=201, response_model=ArticleDetail)
async def create_article(data: ArticleCreate, principal: CurrentPrincipal, db: DbSession):
    article = await article_service.create_article(
        db, data.title, data.summary, data.content, principal.user_id, data.tags
    )
    await cache.invalidate_article()
    audit.log_user_action(
        "ARTICLE_CREATE", f"Created article: {article.title}", principal.user_id, principal.name
    )
    return await _detail_payload(db, article)


@router.put("/{article_id}", response_model=ArticleDetail)
async def update_article(
    article_id: int, data: ArticleUpdate, principal: ArticleEditor, db: DbSession
):
    article = await article_service.update_article(db, article_id, data)
    await cache.invalidate_article(article_id)
    audit.log_user_action(
        "ARTICLE_EDIT", f"Edited article ID: {article_id}", principal.user_id, principal.name
    )
    return await _detail_payload(db, article)


@router.delete("/{article_id}", status_code=204)
async def delete_article(article_id: int, principal: ArticleEditor, db: DbSession):
    await article_service.delete_article(db, article_id)
    await cache.invalidate_article(article_id)
    audit.log_user_action(
        "ARTICLE_DELETE", f"Deleted article ID: {article_id}", principal.user_id, principal.name
    )


@router.get("/{article_id}/comments", response_model=list[CommentResponse])
async def list_article_comments(article_id: int, db: DbSession):
    await article_service.get_article(db, article_id)
    return await comment_service.get_comments_by_article(db, article_id)


@router.post("/{article_id}/comments", status_code=201, response_model=CommentResponse)
async def add_comment(
    article_id: int, data: ArticleCommentCreate, principal: CurrentPrincipal, db: DbSession
):
    comment = await article_service.add_comment(db, article_id, data.text, principal.user_id)
    await cache.invalidate_article(article_id)
    audit.log_user_action(
        "COMMENT_CREATE", f"Commented on article ID: {article_id}", principal.user_id, principal.name
    )
    return comment
