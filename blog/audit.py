import logging
from datetime import datetime, timezone

logger = logging.getLogger(__name__)


class AuditLogger:
    """
    Audit sink for user actions, errors and informational events.

    Actions and info events go to the ``blog.audit.actions`` logger,
    errors to ``blog.audit.errors``, so a deployment can route them to
    separate files.  Every method swallows its own failures: an audit
    write must never break the operation that triggered it.
    """

    def __init__(self) -> None:
        self._actions = logging.getLogger("blog.audit.actions")
        self._errors = logging.getLogger("blog.audit.errors")

    @staticmethod
    def _stamp() -> str:
        return datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S")

    def log_user_action(
        self,
        action: str,
        description: str,
        user_id: int | None = None,
        user_name: str | None = None,
    ) -> None:
        try:
            user_info = f"UserID: {user_id}" if user_id is not None else "Anonymous"
            if user_name:
                user_info += f", UserName: {user_name}"
            self._actions.info(
                "[UTC: %s] ACTION: %s | %s | %s",
                self._stamp(), action, user_info, description,
                extra={"action": action, "user_id": user_id},
            )
        except Exception as exc:  # pragma: no cover
            logger.debug("Audit action write failed: %s", exc)

    def log_error(
        self,
        message: str,
        exc: BaseException | None = None,
        user_id: int | None = None,
    ) -> None:
        try:
            user_info = f"UserID: {user_id}" if user_id is not None else "No user"
            self._errors.error(
                "[UTC: %s] %s | %s",
                self._stamp(), message, user_info,
                exc_info=(type(exc), exc, exc.__traceback__) if exc is not None else None,
                extra={"user_id": user_id},
            )
        except Exception as err:  # pragma: no cover
            logger.debug("Audit error write failed: %s", err)

    def log_info(self, message: str, user_id: int | None = None) -> None:
        try:
            user_info = f"UserID: {user_id}" if user_id is not None else "No user"
            self._actions.info("INFO: %s | %s", message, user_info, extra={"user_id": user_id})
        except Exception as exc:  # pragma: no cover
            logger.debug("Audit info write failed: %s", exc)


# Module-level singleton shared across all request handlers.
audit = AuditLogger()
