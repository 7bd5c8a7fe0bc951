from __future__ import annotations

import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar


_request_id: ContextVar[str] = ContextVar("request_id", default="")


def new_request_id() -> str:
    return uuid.uuid4().hex


def set_request_id(value: str | None = None) -> str:
    request_id = value or new_request_id()
    _request_id.set(request_id)
    return request_id


def get_request_id() -> str:
    return _request_id.get()


@contextmanager
def request_context(value: str | None) -> Iterator[str]:
    """Bind ``value`` as the request id for the block, restoring the previous one.

    Used on threads that serve work on behalf of another context, such as the
    analysis worker, so their log lines carry the originating id.
    """
    request_id = value or new_request_id()
    token = _request_id.set(request_id)
    try:
        yield request_id
    finally:
        _request_id.reset(token)
