"""
Organization guard decision tests.
"""

from __future__ import annotations

import pytest

from workforce.core.guard import RENDER, REDIRECT, SessionState, decide

EXCLUSIONS = ["/dashboard/error"]
NO_SESSION = SessionState(is_valid=False)
NO_ORG = SessionState(is_valid=True, has_org=False)
WITH_ORG = SessionState(is_valid=True, has_org=True)


class TestDecide:
    def test_excluded_path_renders_without_org(self):
        decision = decide("/dashboard/error/none-org", NO_ORG, EXCLUSIONS)
        assert decision.action == RENDER
        assert decision.should_render
        assert decision.reason == "excluded"

    @pytest.mark.parametrize("path", ["/dashboard", "/dashboard/teams", "/services/abc", "/"])
    def test_missing_org_redirects_to_error_path(self, path):
        decision = decide(path, NO_ORG, EXCLUSIONS)
        assert decision.action == REDIRECT
        assert decision.redirect_to == "/dashboard/error/none-org"
        assert decision.reason == "no_organization"

    @pytest.mark.parametrize("path", ["/dashboard", "/dashboard/error/none-org"])
    def test_no_session_redirects_to_login(self, path):
        decision = decide(path, NO_SESSION, EXCLUSIONS)
        assert decision.action == REDIRECT
        assert decision.redirect_to == "/login"

    def test_resolved_org_renders(self):
        assert decide("/dashboard/teams", WITH_ORG, EXCLUSIONS).action == RENDER

    def test_custom_paths(self):
        decision = decide("/app", NO_ORG, [], login_path="/signin", error_path="/setup")
        assert decision.redirect_to == "/setup"
        decision = decide("/app", NO_SESSION, [], login_path="/signin", error_path="/setup")
        assert decision.redirect_to == "/signin"

    def test_empty_exclusion_prefix_is_ignored(self):
        decision = decide("/dashboard", NO_ORG, [""])
        assert decision.action == REDIRECT
