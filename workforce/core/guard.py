"""
Organization guard: decides whether a navigation may render or must redirect.

``decide`` is a pure function of the pathname and the caller's session state,
so any front end (or the ``/api/auth/guard`` endpoint) can apply it.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional

RENDER = "render"
REDIRECT = "redirect"


@dataclass(frozen=True)
class SessionState:
    is_valid: bool
    has_org: bool = False


@dataclass(frozen=True)
class GuardDecision:
    action: str
    redirect_to: Optional[str] = None
    reason: str = ""

    @property
    def should_render(self) -> bool:
        return self.action == RENDER


def is_excluded(pathname: str, exclusions: Iterable[str]) -> bool:
    return any(pathname.startswith(prefix) for prefix in exclusions if prefix)


def decide(
    pathname: str,
    state: SessionState,
    exclusions: Iterable[str] = (),
    *,
    login_path: str = "/login",
    error_path: str = "/dashboard/error/none-org",
) -> GuardDecision:
    """Render or redirect for ``pathname``.

    No valid session always redirects to login, even on excluded paths.
    Excluded paths render without a resolved organization; every other path
    needs one and otherwise redirects to the organization error page.
    """
    if not state.is_valid:
        return GuardDecision(REDIRECT, login_path, "no_session")
    if is_excluded(pathname, exclusions):
        return GuardDecision(RENDER, None, "excluded")
    if state.has_org:
        return GuardDecision(RENDER, None, "ok")
    return GuardDecision(REDIRECT, error_path, "no_organization")
