"""Exception hierarchy shared by the resolver, repository and routes."""

from __future__ import annotations


class LogbookError(Exception):
    """Base error carrying the HTTP status it should be reported with."""

    status_code = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def to_payload(self) -> dict[str, str]:
        return {"error": self.message}


class ConfigError(LogbookError):
    """A required API credential is missing from the environment."""

    def __init__(self, setting_name: str, info: str | None = None) -> None:
        super().__init__(f"{setting_name} not configured")
        self.setting_name = setting_name
        self.info = info

    def to_payload(self) -> dict[str, str]:
        payload = super().to_payload()
        if self.info:
            payload["info"] = self.info
        return payload


class InvalidRequestError(LogbookError):
    """The caller sent a request that cannot be processed as-is."""

    status_code = 400


class MissingInputError(InvalidRequestError):
    """Neither a title nor an identifier survived input routing."""


class NotFoundError(LogbookError):
    """No catalog match was found after direct and fuzzy attempts."""

    status_code = 404


class PersistenceError(LogbookError):
    """The collection store rejected a create, update or delete."""


class UnauthorizedError(LogbookError):
    """The request carries no acting user."""

    status_code = 401
