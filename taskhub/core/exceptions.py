"""Custom exceptions.

Every error raised by the task engine and the services is an ``HTTPException``
subclass, so it propagates untouched to FastAPI which renders the status code.
The structured attributes (``field``, ``from_status``...) stay available to
callers that handle the error in-process.

Messages are looked up in the translation catalogue. The English text is
stored as ``detail``; the key and its parameters are kept so the HTTP layer
can render the message again in the caller's language.
"""
from typing import Any, Dict, Optional
from fastapi import HTTPException, status
from taskhub.localization.helpers import DEFAULT_LOCALE, get_translation


class LocalizedHTTPException(HTTPException):
    """HTTP error whose message comes from the translation catalogue."""

    def __init__(
        self,
        status_code: int,
        detail: Optional[str] = None,
        message_key: Optional[str] = None,
        headers: Optional[Dict[str, str]] = None,
        **params: Any,
    ):
        # An explicit detail is final and is never translated
        self.message_key = message_key if detail is None else None
        self.message_params = params
        if detail is None:
            detail = get_translation(message_key, DEFAULT_LOCALE, **params)
        super().__init__(status_code=status_code, detail=detail, headers=headers)

    def localized_detail(self, locale: str) -> str:
        if self.message_key is None:
            return self.detail
        return get_translation(self.message_key, locale, **self.message_params)


class NotFoundError(LocalizedHTTPException):
    """Resource not found (or soft-deleted) exception."""

    def __init__(self, entity_type: Optional[str] = None, entity_id: Any = None, detail: Optional[str] = None):
        self.entity_type = entity_type
        self.entity_id = entity_id
        super().__init__(
            status.HTTP_404_NOT_FOUND,
            detail,
            "errors.entity_not_found" if entity_type is not None else "errors.resource_not_found",
            entity=entity_type,
            id=entity_id,
        )


class UnauthorizedError(LocalizedHTTPException):
    """Unauthorized exception."""

    def __init__(self, detail: Optional[str] = None, message_key: str = "errors.not_authenticated"):
        super().__init__(
            status.HTTP_401_UNAUTHORIZED,
            detail,
            message_key,
            headers={"WWW-Authenticate": "Bearer"},
        )


class ForbiddenError(LocalizedHTTPException):
    """Forbidden exception."""

    def __init__(self, detail: Optional[str] = None, message_key: str = "errors.permission_denied", **params: Any):
        super().__init__(status.HTTP_403_FORBIDDEN, detail, message_key, **params)


class AccessDeniedError(ForbiddenError):
    """Caller is not allowed to act on the project's tasks."""

    def __init__(self, detail: Optional[str] = None):
        super().__init__(detail, message_key="errors.project_access_denied")


class ValidationError(LocalizedHTTPException):
    """A field-level invariant was violated."""

    def __init__(self, field: str, reason: str, detail: Optional[str] = None):
        self.field = field
        self.reason = reason
        super().__init__(
            status.HTTP_400_BAD_REQUEST, detail, "errors.validation_field", field=field, reason=reason
        )


class InvalidTransitionError(LocalizedHTTPException):
    """Requested status change is not permitted by the transition table."""

    def __init__(self, from_status: Any, to_status: Any):
        self.from_status = from_status
        self.to_status = to_status
        super().__init__(
            status.HTTP_400_BAD_REQUEST,
            message_key="errors.invalid_transition",
            from_status=getattr(from_status, "value", from_status),
            to_status=getattr(to_status, "value", to_status),
        )


class ConflictError(LocalizedHTTPException):
    """Conflict exception."""

    def __init__(self, detail: Optional[str] = None, message_key: str = "errors.resource_conflict", **params: Any):
        super().__init__(status.HTTP_409_CONFLICT, detail, message_key, **params)


class StaleTaskError(ConflictError):
    """The task row changed between read and write."""

    def __init__(self, task_id: Any = None):
        self.task_id = task_id
        super().__init__(message_key="errors.task_modified_concurrently", id=task_id)
