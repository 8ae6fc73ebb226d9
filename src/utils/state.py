from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import db.accounts as accounts
from db.cart import merge_carts_on_login
from db.models import User


@dataclass
class GlobalState:
    """
    Application state shared by screens.

    Fields:
      - user: the signed-in account, None while browsing as a guest
    """

    user: Optional[User] = None

    @property
    def user_id(self) -> Optional[str]:
        """Cart/request owner: the user id, or None for the guest partition."""
        return self.user.id if self.user else None

    @property
    def is_guest(self) -> bool:
        return self.user is None

    async def restore(self) -> Optional[User]:
        """Pick up a user remembered from a previous run."""
        self.user = await accounts.get_current_user()
        return self.user

    async def sign_in(self, email: str, pwd: str) -> User:
        """
        Log in and fold the guest cart into the user's cart.
        Raises AuthError on bad credentials.
        """
        self.user = await accounts.login(email, pwd)
        await merge_carts_on_login(self.user.id)
        return self.user

    async def update_profile(self, **changes) -> User:
        """Save profile changes of the signed-in user and keep them in state."""
        self.user = await accounts.update_user_profile(**changes)
        return self.user

    async def sign_out(self) -> None:
        if self.user is None:
            return
        await accounts.logout()
        self.user = None
