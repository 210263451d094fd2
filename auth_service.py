"""
Legacy auth service.

Sign-in, sign-up and sign-out happen in the external auth UI. These calls stay
for older callers and only read the current-user store.
"""
from typing import Any, Optional

import store
from errors import AuthDelegatedError
from schemas import CurrentUser


def login(email: str, password: str) -> None:
    raise AuthDelegatedError("Please use the login page for authentication")


def register(user_data: Any) -> None:
    raise AuthDelegatedError("Please use the signup page for registration")


def logout() -> None:
    # The external UI owns the session; nothing to tear down here.
    return None


def get_current_user() -> Optional[CurrentUser]:
    return store.get_state().user


def is_authenticated() -> bool:
    return store.get_state().is_authenticated
