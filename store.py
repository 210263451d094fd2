"""
Current-user state.

The signed-in user is held in a context variable, so each request (or task)
sees its own snapshot while callers still read it as one global store.
"""
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass
from typing import Iterator, Optional

from schemas import CurrentUser


@dataclass(frozen=True)
class UserState:
    user: Optional[CurrentUser] = None
    is_authenticated: bool = False


_state: ContextVar[UserState] = ContextVar("user_state", default=UserState())


def get_state() -> UserState:
    return _state.get()


def set_user(user: Optional[CurrentUser]) -> None:
    _state.set(UserState(user=user, is_authenticated=user is not None))


def clear_user() -> None:
    _state.set(UserState())


@contextmanager
def use_user(user: Optional[CurrentUser]) -> Iterator[UserState]:
    """Temporarily sign `user` in, restoring the previous state on exit."""
    token = _state.set(UserState(user=user, is_authenticated=user is not None))
    try:
        yield _state.get()
    finally:
        _state.reset(token)
