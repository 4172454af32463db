"""Tests for AuthResolver, resolve_auth, and extract_path."""

from __future__ import annotations

import logging

import pytest

from netclient.auth.base import AuthHandler, AuthResult
from netclient.auth.resolver import AuthResolver, extract_path, resolve_auth
from netclient.exceptions import ConfigError
from netclient.models import (
    BasicAuth,
    BearerAuth,
    CustomAuth,
    DynamicAuth,
    HTTPMethod,
    NoAuth,
    RuleBasedAuth,
    rule,
)


ADMIN_BASIC = BasicAuth(username="admin", password="pw")
SIGNED = CustomAuth(static_headers={"X-Signature": "sig"})
API_KEY = CustomAuth(static_headers={"X-API-Key": "key"})
USER_BEARER = BearerAuth(token_provider=lambda: "user-token")


@pytest.fixture
def rule_table() -> RuleBasedAuth:
    return RuleBasedAuth(
        rules=[
            rule("/admin/.*", ADMIN_BASIC, methods="GET"),
            rule("/admin/.*", SIGNED, methods={"POST", "PUT", "DELETE"}),
            rule("/public/.*", API_KEY),
        ],
        default=USER_BEARER,
    )


# ---------------------------------------------------------------------------
# extract_path
# ---------------------------------------------------------------------------


class TestExtractPath:
    def test_absolute_url(self) -> None:
        assert extract_path("https://api.x.com/users/5?x=1") == "/users/5"

    def test_absolute_url_without_path(self) -> None:
        assert extract_path("https://api.x.com") == "/"

    def test_relative_path(self) -> None:
        assert extract_path("/users/5") == "/users/5"

    def test_relative_path_query_is_dropped(self) -> None:
        assert extract_path("/users?page=2") == "/users"

    def test_encoded_path_kept_encoded(self) -> None:
        assert extract_path("https://api.x.com/files/a%20b") == "/files/a%20b"

    def test_relative_without_leading_slash(self) -> None:
        assert extract_path("users/5") == "users/5"


# ---------------------------------------------------------------------------
# Leaf dispatch
# ---------------------------------------------------------------------------


class TestLeafResolution:
    def test_no_auth(self) -> None:
        result = AuthResolver().resolve("GET", "/anything")
        assert result.is_noop
        assert isinstance(result.strategy, NoAuth)

    def test_leaf_strategy_applied(self) -> None:
        result = AuthResolver(ADMIN_BASIC).resolve("GET", "/x")
        assert result.strategy is ADMIN_BASIC
        assert result.dynamic_headers["Authorization"].startswith("Basic ")

    def test_explicit_strategy_overrides_configured(self) -> None:
        result = AuthResolver(ADMIN_BASIC).resolve("GET", "/x", strategy=API_KEY)
        assert result.static_headers == {"X-API-Key": "key"}

    def test_lowercase_method(self) -> None:
        result = AuthResolver(ADMIN_BASIC).resolve("get", "/x")
        assert result.strategy is ADMIN_BASIC

    def test_missing_handler(self) -> None:
        resolver = AuthResolver(ADMIN_BASIC, handlers=[])
        with pytest.raises(ConfigError, match="No auth handler registered for kind 'basic'"):
            resolver.resolve("GET", "/x")

    def test_registered_handler_replaces_builtin(self) -> None:
        class StubBasic(AuthHandler):
            @property
            def kind(self) -> str:
                return "basic"

            def apply(self, strategy: BasicAuth) -> AuthResult:
                return AuthResult(strategy=strategy, static_headers={"X-Stub": "1"})

        resolver = AuthResolver(ADMIN_BASIC)
        resolver.register(StubBasic())
        assert resolver.resolve("GET", "/x").static_headers == {"X-Stub": "1"}

    def test_resolve_auth_convenience(self) -> None:
        result = resolve_auth(API_KEY, HTTPMethod.GET, "/x")
        assert result.static_headers == {"X-API-Key": "key"}


# ---------------------------------------------------------------------------
# Dynamic
# ---------------------------------------------------------------------------


class TestDynamicResolution:
    def test_selector_receives_method_and_path(self) -> None:
        seen: list[tuple[HTTPMethod, str]] = []

        def select(method: HTTPMethod, path: str) -> BasicAuth:
            seen.append((method, path))
            return ADMIN_BASIC

        AuthResolver(DynamicAuth(selector=select)).resolve("POST", "https://h/x/y?z=1")
        assert seen == [(HTTPMethod.POST, "/x/y")]

    def test_selector_returning_none_means_no_auth(self) -> None:
        result = AuthResolver(DynamicAuth(selector=lambda m, p: None)).resolve("GET", "/x")
        assert result.is_noop

    def test_selector_leaf_applied(self) -> None:
        strategy = DynamicAuth(
            selector=lambda m, p: API_KEY if p.startswith("/public") else USER_BEARER
        )
        resolver = AuthResolver(strategy)
        assert resolver.resolve("GET", "/public/a").static_headers == {"X-API-Key": "key"}
        assert resolver.resolve("GET", "/me").dynamic_headers == {
            "Authorization": "Bearer user-token"
        }

    def test_selector_returning_rule_based_is_rejected(self, rule_table: RuleBasedAuth) -> None:
        resolver = AuthResolver(DynamicAuth(selector=lambda m, p: rule_table))
        with pytest.raises(ConfigError, match="rule_based"):
            resolver.resolve("GET", "/x")

    def test_selector_returning_dynamic_is_rejected(self) -> None:
        inner = DynamicAuth(selector=lambda m, p: None)
        resolver = AuthResolver(DynamicAuth(selector=lambda m, p: inner))
        with pytest.raises(ConfigError, match="leaf strategy"):
            resolver.resolve("GET", "/x")


# ---------------------------------------------------------------------------
# RuleBased
# ---------------------------------------------------------------------------


class TestRuleBasedResolution:
    def test_get_admin_uses_basic(self, rule_table: RuleBasedAuth) -> None:
        assert AuthResolver(rule_table).resolve("GET", "/admin/users").strategy is ADMIN_BASIC

    def test_post_admin_uses_signature(self, rule_table: RuleBasedAuth) -> None:
        assert AuthResolver(rule_table).resolve("POST", "/admin/users").strategy is SIGNED

    def test_public_any_method(self, rule_table: RuleBasedAuth) -> None:
        resolver = AuthResolver(rule_table)
        for method in ("GET", "PATCH", "DELETE"):
            assert resolver.resolve(method, "/public/docs").strategy is API_KEY

    def test_unmatched_uses_default(self, rule_table: RuleBasedAuth) -> None:
        result = AuthResolver(rule_table).resolve("GET", "/user/profile")
        assert result.strategy is USER_BEARER
        assert result.dynamic_headers == {"Authorization": "Bearer user-token"}

    def test_unmatched_method_falls_through(self, rule_table: RuleBasedAuth) -> None:
        assert AuthResolver(rule_table).resolve("PATCH", "/admin/users").strategy is USER_BEARER

    def test_no_default_means_no_auth(self) -> None:
        table = RuleBasedAuth(rules=[rule("/admin/.*", ADMIN_BASIC)])
        assert AuthResolver(table).resolve("GET", "/other").is_noop

    def test_first_match_wins(self) -> None:
        table = RuleBasedAuth(
            rules=[rule("/admin/.*", ADMIN_BASIC), rule("/admin/users", API_KEY)]
        )
        assert AuthResolver(table).resolve("GET", "/admin/users").strategy is ADMIN_BASIC

    def test_full_url_matches_on_path(self, rule_table: RuleBasedAuth) -> None:
        result = AuthResolver(rule_table).resolve("GET", "https://api.x.com/admin/a?q=1")
        assert result.strategy is ADMIN_BASIC

    def test_match_logged_at_debug(
        self, rule_table: RuleBasedAuth, caplog: pytest.LogCaptureFixture
    ) -> None:
        with caplog.at_level(logging.DEBUG, logger="netclient.auth.resolver"):
            AuthResolver(rule_table).resolve("GET", "/admin/users")
        assert "Auth rule /admin/.* matched GET /admin/users" in caplog.text
