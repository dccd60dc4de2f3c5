"""OpenStack API errors and helpers classifying them."""

from __future__ import annotations

from http import HTTPStatus
from typing import ClassVar, Iterable, Optional, Type, TypeVar


class OpenStackError(Exception):
    """Base class of errors reported by the OpenStack API layer."""


class UnexpectedResponseCodeError(OpenStackError):
    """The API answered with a status code that was not expected."""

    def __init__(
        self,
        actual: int,
        expected: Iterable[int] = (),
        method: str = "",
        url: str = "",
        body: bytes = b"",
    ) -> None:
        self.actual = actual
        self.expected = tuple(expected)
        self.method = method
        self.url = url
        self.body = body
        super().__init__(
            f"Expected HTTP response code {list(self.expected)} when accessing "
            f"[{method} {url}], but got {actual} instead"
        )

    @property
    def status_code(self) -> int:
        return self.actual


class _DefaultResponseError(OpenStackError):
    status: ClassVar[int]
    summary: ClassVar[str]

    def __init__(self, method: str = "", url: str = "", body: bytes = b"") -> None:
        self.actual = self.status
        self.method = method
        self.url = url
        self.body = body
        detail = body.decode("utf-8", "replace") if isinstance(body, bytes) else str(body)
        super().__init__(f"{self.summary}: [{method} {url}], error message: {detail}")

    @property
    def status_code(self) -> int:
        return self.actual


class Default400Error(_DefaultResponseError):
    """The API rejected the request as invalid."""

    status = HTTPStatus.BAD_REQUEST
    summary = "Bad request with"


class Default404Error(_DefaultResponseError):
    """The requested resource does not exist."""

    status = HTTPStatus.NOT_FOUND
    summary = "Resource not found"


class Default409Error(_DefaultResponseError):
    """The request conflicts with the current state of the resource."""

    status = HTTPStatus.CONFLICT
    summary = "Conflict"


class ResourceNotFoundError(OpenStackError):
    """A lookup by name found no resource."""

    def __init__(self, name: str = "", resource_type: str = "") -> None:
        self.name = name
        self.resource_type = resource_type
        super().__init__(f"Unable to find {resource_type} with name {name}")


_E = TypeVar("_E", bound=BaseException)


def _find(err: Optional[BaseException], cls: Type[_E]) -> Optional[_E]:
    """Return the first error of type ``cls`` along the chain of causes."""
    seen: set[int] = set()
    while err is not None and id(err) not in seen:
        if isinstance(err, cls):
            return err
        seen.add(id(err))
        err = err.__cause__
    return None


def is_retryable(err: Optional[BaseException]) -> bool:
    """Tell whether a failed call may succeed when tried again."""
    found = _find(err, UnexpectedResponseCodeError)
    if found is None:
        return False
    return found.status_code >= 500 and found.status_code != HTTPStatus.NOT_IMPLEMENTED


def is_not_found(err: Optional[BaseException]) -> bool:
    """Tell whether the error reports a missing resource."""
    if _find(err, Default404Error) is not None:
        return True
    if _find(err, ResourceNotFoundError) is not None:
        return True
    found = _find(err, UnexpectedResponseCodeError)
    return found is not None and found.actual == HTTPStatus.NOT_FOUND


def is_invalid_error(err: Optional[BaseException]) -> bool:
    """Tell whether the error reports an invalid request."""
    if _find(err, Default400Error) is not None:
        return True
    found = _find(err, UnexpectedResponseCodeError)
    return found is not None and found.actual == HTTPStatus.BAD_REQUEST


def is_conflict(err: Optional[BaseException]) -> bool:
    """Tell whether the error reports a conflict."""
    if _find(err, Default409Error) is not None:
        return True
    found = _find(err, UnexpectedResponseCodeError)
    return found is not None and found.actual == HTTPStatus.CONFLICT