"""
Direct service-layer tests: exercises business rules without HTTP overhead.

These tests call service functions directly with a database session, so
they cover validation, tag resolution, role membership and delete
constraints independently of the access-control layer.
"""
import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from blog.exceptions import (
    ConstraintViolationError,
    DuplicateEntityError,
    InvalidOperationError,
    NotFoundError,
    ValidationError,
)
from blog.models import ADMIN, MODERATOR, USER, User
from blog.repositories import role_repository, tag_repository
from blog.schemas import ArticleUpdate, CommentUpdate, RoleUpdate, TagUpdate, UserUpdate
from blog.services import (
    article_service,
    comment_service,
    role_service,
    tag_service,
    user_service,
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

async def _create_user(db: AsyncSession, email: str = "svc@example.com") -> User:
    return await user_service.register_user(db, email, "pw-123456", "Service", "User")


async def _create_article(db: AsyncSession, author: User, title: str = "Post", tags=None):
    return await article_service.create_article(
        db, title, f"{title} summary", f"{title} content", author.id, tags
    )


async def _lookup_misses(db: AsyncSession, name: str):
    """Stand-in for ``get_by_name`` that never sees a concurrently inserted row."""
    return None


# ---------------------------------------------------------------------------
# user_service
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_register_then_validate_credentials(db_session: AsyncSession):
    await user_service.register_user(db_session, "alice@example.com", "correct-horse")

    assert await user_service.validate_credentials(db_session, "alice@example.com", "correct-horse")
    assert not await user_service.validate_credentials(db_session, "alice@example.com", "wrong")
    assert not await user_service.validate_credentials(db_session, "nobody@example.com", "correct-horse")


@pytest.mark.asyncio
async def test_register_normalises_email_and_stores_hash(db_session: AsyncSession):
    user = await user_service.register_user(db_session, "  Bob@Example.COM ", "pw-123456")
    assert user.email == "bob@example.com"
    assert user.password_hash != "pw-123456"
    assert user.password_hash.startswith("$2")
    assert user.registered_at is not None


@pytest.mark.asyncio
async def test_register_duplicate_email_raises(db_session: AsyncSession):
    await user_service.register_user(db_session, "dup@example.com", "pw-123456")
    with pytest.raises(DuplicateEntityError):
        await user_service.register_user(db_session, "DUP@example.com", "another-pw")


@pytest.mark.asyncio
@pytest.mark.parametrize("email", ["", "   ", "not-an-email", "a@b@c"])
async def test_register_rejects_bad_email(db_session: AsyncSession, email: str):
    with pytest.raises(ValidationError):
        await user_service.register_user(db_session, email, "pw-123456")


@pytest.mark.asyncio
async def test_register_rejects_blank_password(db_session: AsyncSession):
    with pytest.raises(ValidationError, match="Password"):
        await user_service.register_user(db_session, "carol@example.com", "  ")


@pytest.mark.asyncio
async def test_register_attaches_default_user_role(db_session: AsyncSession):
    user = await _create_user(db_session)
    assert user.role_names == [USER]
    assert await user_service.user_has_role(db_session, user.id, USER)
    assert not await user_service.user_has_role(db_session, user.id, ADMIN)


@pytest.mark.asyncio
async def test_get_user_missing_raises_but_with_roles_returns_none(db_session: AsyncSession):
    with pytest.raises(NotFoundError):
        await user_service.get_user(db_session, 999)
    assert await user_service.get_user_with_roles(db_session, 999) is None


@pytest.mark.asyncio
async def test_update_user_changes_names_only(db_session: AsyncSession):
    user = await _create_user(db_session)
    updated = await user_service.update_user(
        db_session, user.id, UserUpdate(first_name=" Ada ", last_name="")
    )
    assert updated.first_name == "Ada"
    assert updated.last_name is None
    assert updated.email == "svc@example.com"
    assert updated.updated_at is not None
    assert updated.display_name == "Ada"


@pytest.mark.asyncio
async def test_delete_user_blocked_while_authoring(db_session: AsyncSession):
    author = await _create_user(db_session)
    await _create_article(db_session, author)

    with pytest.raises(ConstraintViolationError):
        await user_service.delete_user(db_session, author.id)


@pytest.mark.asyncio
async def test_delete_user_without_content(db_session: AsyncSession):
    user = await _create_user(db_session)
    await user_service.delete_user(db_session, user.id)

    with pytest.raises(NotFoundError):
        await user_service.get_user(db_session, user.id)


@pytest.mark.asyncio
async def test_get_users_newest_first(db_session: AsyncSession):
    first = await _create_user(db_session, "first@example.com")
    second = await _create_user(db_session, "second@example.com")
    users = await user_service.get_users(db_session)
    assert [u.id for u in users] == [second.id, first.id]


# ---------------------------------------------------------------------------
# role_service
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_standard_roles_seeded_once(db_session: AsyncSession):
    await role_service.ensure_standard_roles(db_session)
    names = [r.name for r in await role_service.get_roles(db_session)]
    assert names == sorted([ADMIN, MODERATOR, USER])


@pytest.mark.asyncio
async def test_admin_role_cannot_be_deleted(db_session: AsyncSession):
    admin = await role_service.get_role_by_name(db_session, ADMIN)
    with pytest.raises(InvalidOperationError):
        await role_service.delete_role(db_session, admin.id)


@pytest.mark.asyncio
async def test_custom_role_deletes_only_without_holders(db_session: AsyncSession):
    editor = await role_service.create_role(db_session, "Editor", "Edits things")
    await role_service.delete_role(db_session, editor.id)
    assert await role_service.get_role_by_name(db_session, "Editor") is None

    reviewer = await role_service.create_role(db_session, "Reviewer", "Reviews things")
    user = await _create_user(db_session)
    await role_service.assign_role_to_user(db_session, user.id, reviewer.id)
    with pytest.raises(InvalidOperationError):
        await role_service.delete_role(db_session, reviewer.id)


@pytest.mark.asyncio
async def test_create_role_duplicate_name(db_session: AsyncSession):
    with pytest.raises(DuplicateEntityError):
        await role_service.create_role(db_session, ADMIN, "Another admin")


@pytest.mark.asyncio
async def test_create_role_unique_violation_is_duplicate(db_session: AsyncSession, monkeypatch):
    await role_service.create_role(db_session, "Editor", "Edits things")
    await db_session.commit()

    monkeypatch.setattr(role_repository, "get_by_name", _lookup_misses)
    with pytest.raises(DuplicateEntityError):
        await role_service.create_role(db_session, "Editor", "d")


@pytest.mark.asyncio
async def test_rename_role_unique_violation_is_duplicate(db_session: AsyncSession, monkeypatch):
    await role_service.create_role(db_session, "Editor", "Edits things")
    reviewer = await role_service.create_role(db_session, "Reviewer", "Reviews things")
    await db_session.commit()

    monkeypatch.setattr(role_repository, "get_by_name", _lookup_misses)
    with pytest.raises(DuplicateEntityError):
        await role_service.update_role(
            db_session, reviewer.id, RoleUpdate(name="Editor", description="d")
        )


@pytest.mark.asyncio
async def test_standard_role_keeps_its_name(db_session: AsyncSession):
    moderator = await role_service.get_role_by_name(db_session, MODERATOR)
    with pytest.raises(InvalidOperationError):
        await role_service.update_role(
            db_session, moderator.id, RoleUpdate(name="Mod", description="Renamed")
        )

    updated = await role_service.update_role(
        db_session, moderator.id, RoleUpdate(name=MODERATOR, description="Keeps the peace")
    )
    assert updated.description == "Keeps the peace"


@pytest.mark.asyncio
async def test_assign_role_is_idempotent_and_removable(db_session: AsyncSession):
    user = await _create_user(db_session)
    moderator = await role_service.get_role_by_name(db_session, MODERATOR)

    await role_service.assign_role_to_user(db_session, user.id, moderator.id)
    await role_service.assign_role_to_user(db_session, user.id, moderator.id)
    assert user.role_names == [MODERATOR, USER]
    assert await role_service.user_has_role(db_session, user.id, MODERATOR)

    await role_service.remove_role_from_user(db_session, user.id, moderator.id)
    await role_service.remove_role_from_user(db_session, user.id, moderator.id)
    assert not await role_service.user_has_role(db_session, user.id, MODERATOR)


@pytest.mark.asyncio
async def test_assign_role_to_missing_user(db_session: AsyncSession):
    admin = await role_service.get_role_by_name(db_session, ADMIN)
    with pytest.raises(InvalidOperationError):
        await role_service.assign_role_to_user(db_session, 999, admin.id)


# ---------------------------------------------------------------------------
# article_service / tag_service
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_articles_share_existing_tags(db_session: AsyncSession):
    author = await _create_user(db_session)
    first = await _create_article(db_session, author, "First", ["a", "b"])
    second = await _create_article(db_session, author, "Second", ["a", "c"])

    tags = await tag_service.get_tags(db_session)
    assert [t.name for t in tags] == ["a", "b", "c"]

    shared_first = next(t for t in first.tags if t.name == "a")
    shared_second = next(t for t in second.tags if t.name == "a")
    assert shared_first.id == shared_second.id

    tagged = await article_service.get_articles_by_tag(db_session, "a")
    assert {a.id for a in tagged} == {first.id, second.id}


@pytest.mark.asyncio
async def test_tag_names_are_trimmed_deduplicated_and_case_sensitive(db_session: AsyncSession):
    author = await _create_user(db_session)
    article = await _create_article(db_session, author, "Tags", [" Python", "python", "Python ", ""])
    assert sorted(t.name for t in article.tags) == ["Python", "python"]

    assert await article_service.get_articles_by_tag(db_session, "PYTHON") == []


@pytest.mark.asyncio
async def test_create_article_validation(db_session: AsyncSession):
    author = await _create_user(db_session)
    with pytest.raises(ValidationError, match="Title"):
        await article_service.create_article(db_session, "  ", "s", "c", author.id)
    with pytest.raises(ValidationError, match="Title"):
        await article_service.create_article(db_session, "x" * 201, "s", "c", author.id)
    with pytest.raises(NotFoundError):
        await article_service.create_article(db_session, "t", "s", "c", 999)


@pytest.mark.asyncio
async def test_articles_listed_newest_first(db_session: AsyncSession):
    author = await _create_user(db_session)
    older = await _create_article(db_session, author, "Older")
    newer = await _create_article(db_session, author, "Newer")

    articles = await article_service.get_articles(db_session)
    assert [a.id for a in articles] == [newer.id, older.id]

    by_author = await article_service.get_articles_by_author(db_session, author.id)
    assert [a.id for a in by_author] == [newer.id, older.id]


@pytest.mark.asyncio
async def test_update_article_tag_replacement(db_session: AsyncSession):
    author = await _create_user(db_session)
    article = await _create_article(db_session, author, "Original", ["keep"])

    updated = await article_service.update_article(
        db_session, article.id, ArticleUpdate(title="Renamed", summary="s", content="c")
    )
    assert updated.title == "Renamed"
    assert [t.name for t in updated.tags] == ["keep"]
    assert updated.updated_at is not None

    cleared = await article_service.update_article(
        db_session, article.id, ArticleUpdate(title="Renamed", summary="s", content="c", tags=[])
    )
    assert cleared.tags == []


@pytest.mark.asyncio
async def test_get_article_missing_raises(db_session: AsyncSession):
    with pytest.raises(NotFoundError):
        await article_service.get_article(db_session, 12345)


@pytest.mark.asyncio
async def test_delete_article_removes_comments(db_session: AsyncSession):
    author = await _create_user(db_session)
    article = await _create_article(db_session, author)
    comment = await article_service.add_comment(db_session, article.id, "First!", author.id)

    await article_service.delete_article(db_session, article.id)

    assert await comment_service.get_comments_by_article(db_session, article.id) == []
    with pytest.raises(NotFoundError):
        await article_service.get_article(db_session, article.id)


@pytest.mark.asyncio
async def test_tag_crud(db_session: AsyncSession):
    tag = await tag_service.create_tag(db_session, " rust ")
    assert tag.name == "rust"
    with pytest.raises(DuplicateEntityError):
        await tag_service.create_tag(db_session, "rust")

    renamed = await tag_service.update_tag(db_session, tag.id, TagUpdate(name="rustlang"))
    assert renamed.name == "rustlang"
    assert (await tag_service.get_tag_by_name(db_session, "rustlang")).id == tag.id

    await tag_service.delete_tag(db_session, tag.id)
    with pytest.raises(NotFoundError):
        await tag_service.get_tag(db_session, tag.id)


@pytest.mark.asyncio
async def test_delete_tag_unlinks_articles(db_session: AsyncSession):
    author = await _create_user(db_session)
    article = await _create_article(db_session, author, "Tagged", ["gone"])
    tag = await tag_service.get_tag_by_name(db_session, "gone")

    await tag_service.delete_tag(db_session, tag.id)

    assert await article_service.get_articles_by_tag(db_session, "gone") == []
    assert (await article_service.get_article(db_session, article.id)).id == article.id


@pytest.mark.asyncio
async def test_create_tag_unique_violation_is_duplicate(db_session: AsyncSession, monkeypatch):
    await tag_service.create_tag(db_session, "go")
    await db_session.commit()

    monkeypatch.setattr(tag_repository, "get_by_name", _lookup_misses)
    with pytest.raises(DuplicateEntityError):
        await tag_service.create_tag(db_session, "go")


@pytest.mark.asyncio
async def test_rename_tag_unique_violation_is_duplicate(db_session: AsyncSession, monkeypatch):
    await tag_service.create_tag(db_session, "go")
    rust = await tag_service.create_tag(db_session, "rust")
    await db_session.commit()

    monkeypatch.setattr(tag_repository, "get_by_name", _lookup_misses)
    with pytest.raises(DuplicateEntityError):
        await tag_service.update_tag(db_session, rust.id, TagUpdate(name="go"))


@pytest.mark.asyncio
async def test_article_tag_resolution_retries_after_lost_insert(db_session: AsyncSession, monkeypatch):
    author = await _create_user(db_session)
    await tag_service.create_tag(db_session, "go")
    await db_session.commit()

    # The first lookup misses the stored row, as if another writer had
    # inserted it just after; the insert then hits the unique constraint.
    real_get_by_name = tag_repository.get_by_name
    lookups = []

    async def stale_first_lookup(db, name):
        lookups.append(name)
        if len(lookups) == 1:
            return None
        return await real_get_by_name(db, name)

    monkeypatch.setattr(tag_repository, "get_by_name", stale_first_lookup)
    article = await _create_article(db_session, author, "Raced", ["go"])

    assert lookups == ["go", "go"]
    assert [t.name for t in article.tags] == ["go"]
    assert [t.name for t in await tag_service.get_tags(db_session)] == ["go"]


# ---------------------------------------------------------------------------
# comment_service
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_comment_lifecycle(db_session: AsyncSession):
    author = await _create_user(db_session)
    article = await _create_article(db_session, author)

    comment = await comment_service.create_comment(db_session, "  hello  ", article.id, author.id)
    assert comment.text == "hello"

    edited = await comment_service.update_comment(db_session, comment.id, CommentUpdate(text="edited"))
    assert edited.text == "edited"
    assert edited.updated_at is not None

    assert [c.id for c in await comment_service.get_comments(db_session)] == [comment.id]

    await comment_service.delete_comment(db_session, comment.id)
    assert await comment_service.get_comments_by_article(db_session, article.id) == []


@pytest.mark.asyncio
async def test_comment_requires_text_and_existing_article(db_session: AsyncSession):
    author = await _create_user(db_session)
    article = await _create_article(db_session, author)

    with pytest.raises(ValidationError):
        await comment_service.create_comment(db_session, "   ", article.id, author.id)
    with pytest.raises(NotFoundError, match="Article"):
        await comment_service.create_comment(db_session, "hi", 999, author.id)
    with pytest.raises(NotFoundError, match="Author"):
        await comment_service.create_comment(db_session, "hi", article.id, 999)
