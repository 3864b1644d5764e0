"""
Identity resolution — who is making this request?

Inbound requests are plain mappings shaped like the user middleware
output of the host application::

    {"user": {"profile": {"handle": "alice", "admin": False}}}

Any level may be missing. Without a profile there is no account system, so
the requester becomes the non-privileged ``default-user``.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from typing import Any

from loreguard.access.allowlist import AllowListProvider, StaticAllowList
from loreguard.access.model import Identity
from loreguard.core.config import LoreguardConfig
from loreguard.core.constants import DEFAULT_ADMIN_HANDLES, DEFAULT_USER_HANDLE

logger = logging.getLogger(__name__)


def _profile(request: Mapping[str, Any]) -> Mapping[str, Any] | None:
    user = request.get("user")
    if not isinstance(user, Mapping):
        return None
    profile = user.get("profile")
    return profile if isinstance(profile, Mapping) else None


def handle_from_request(request: Mapping[str, Any]) -> str:
    """Profile handle, or ``default-user`` when accounts are disabled."""
    profile = _profile(request)
    if profile is not None:
        handle = profile.get("handle")
        if isinstance(handle, str) and handle:
            return handle
    return DEFAULT_USER_HANDLE


def is_admin_profile(profile: Mapping[str, Any], admin_handles: Iterable[str]) -> bool:
    """Explicit ``admin`` flag, or a handle on the privileged list."""
    if profile.get("admin") is True:
        return True
    return profile.get("handle") in frozenset(admin_handles)


class IdentityResolver:
    """Turns an inbound request into an :class:`Identity`, once per request."""

    def __init__(
        self,
        admin_handles: Iterable[str] = DEFAULT_ADMIN_HANDLES,
        botmakers: Iterable[str] = (),
    ) -> None:
        self._admin_handles = frozenset(admin_handles)
        self._botmakers = frozenset(botmakers)

    @classmethod
    def from_config(
        cls, config: LoreguardConfig, allow_list: StaticAllowList | None = None
    ) -> IdentityResolver:
        botmakers = set(config.botmakers)
        if allow_list is not None:
            botmakers |= allow_list.botmakers
        return cls(admin_handles=config.access.admin_handles, botmakers=botmakers)

    @property
    def admin_handles(self) -> frozenset[str]:
        return self._admin_handles

    def is_botmaker(self, handle: str) -> bool:
        return handle in self._botmakers

    def resolve(self, request: Mapping[str, Any]) -> Identity:
        handle = handle_from_request(request)
        profile = _profile(request)
        is_admin = profile is not None and is_admin_profile(profile, self._admin_handles)
        identity = Identity(handle=handle, is_admin=is_admin, is_botmaker=self.is_botmaker(handle))
        logger.debug(
            "Resolved identity handle=%s admin=%s botmaker=%s",
            identity.handle,
            identity.is_admin,
            identity.is_botmaker,
        )
        return identity


def user_permissions(
    identity: Identity, allow_list: AllowListProvider | None
) -> dict[str, object]:
    """Permission summary for the requester's own UI.

    Keys follow the host application's JSON casing.
    """
    allowed: list[str] = []
    if allow_list is not None:
        try:
            allowed = sorted(allow_list.allowed_for(identity))
        except Exception as exc:  # noqa: BLE001
            logger.warning("Allow-list lookup failed for %s: %s", identity.handle, exc)
    return {
        "isBotmaker": identity.is_botmaker,
        "allowedBooks": allowed,
        "userHandle": identity.handle,
    }
