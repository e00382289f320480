"""Input normalisation and get-or-create shared by the service modules."""
import logging
from typing import Awaitable, Callable, TypeVar

from email_validator import EmailNotValidError, validate_email
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from blog.exceptions import InvalidOperationError, ValidationError

logger = logging.getLogger(__name__)

T = TypeVar("T")


def require_text(value: str | None, field: str, max_length: int | None = None) -> str:
    """
    Return *value* stripped of surrounding whitespace.

    Raises ValidationError when the result is empty or longer than
    *max_length*.
    """
    text = (value or "").strip()
    if not text:
        raise ValidationError(f"{field} is required")
    if max_length is not None and len(text) > max_length:
        raise ValidationError(f"{field} must be at most {max_length} characters")
    return text


def optional_text(value: str | None, field: str, max_length: int) -> str | None:
    """Like ``require_text`` but blank input becomes None."""
    text = (value or "").strip()
    if not text:
        return None
    if len(text) > max_length:
        raise ValidationError(f"{field} must be at most {max_length} characters")
    return text


def normalize_email(email: str | None) -> str:
    """Trim and lower-case *email*; no format check."""
    return (email or "").strip().lower()


def require_email(email: str | None) -> str:
    """Return the normalised form of *email*, raising ValidationError if malformed."""
    normalized = normalize_email(email)
    if not normalized:
        raise ValidationError("Email is required")
    try:
        validate_email(normalized, check_deliverability=False)
    except EmailNotValidError as exc:
        raise ValidationError(f"Invalid email address: {exc}") from exc
    return normalized


async def get_or_create(
    db: AsyncSession,
    lookup: Callable[[], Awaitable[T | None]],
    factory: Callable[[], T],
    attempts: int = 3,
) -> T:
    """
    Return the row found by *lookup*, inserting ``factory()`` when absent.

    The insert runs inside a SAVEPOINT.  When a concurrent writer creates
    the same unique key first, the store's unique constraint raises
    IntegrityError; the savepoint is rolled back and the lookup repeated,
    so the caller always ends up with the single stored row.
    """
    for _ in range(attempts):
        existing = await lookup()
        if existing is not None:
            return existing
        try:
            async with db.begin_nested():
                created = factory()
                db.add(created)
                await db.flush()
            return created
        except IntegrityError:
            logger.info("get_or_create lost an insert race; retrying lookup")
    existing = await lookup()
    if existing is None:
        raise InvalidOperationError("Could not resolve entity after concurrent inserts")
    return existing
