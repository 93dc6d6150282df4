"""Tests for turnstile.routing.location — RouteLocation value type."""

import pytest

from turnstile.routing.location import ROOT, RouteLocation


class TestParse:
    def test_path_only(self) -> None:
        loc = RouteLocation.parse("/dashboard")
        assert loc.path == "/dashboard"
        assert loc.query == {}

    def test_query(self) -> None:
        loc = RouteLocation.parse("/search?q=guards&page=2")
        assert loc.path == "/search"
        assert loc.query == {"q": "guards", "page": "2"}

    def test_blank_query_value_kept(self) -> None:
        loc = RouteLocation.parse("/search?q=")
        assert loc.query == {"q": ""}

    def test_empty_becomes_root(self) -> None:
        assert RouteLocation.parse("").path == "/"

    def test_relative_path_gets_leading_slash(self) -> None:
        assert RouteLocation.parse("settings").path == "/settings"

    def test_scheme_and_host_ignored(self) -> None:
        loc = RouteLocation.parse("https://example.com/profile?tab=2")
        assert loc.path == "/profile"
        assert loc.query == {"tab": "2"}

    def test_name(self) -> None:
        assert RouteLocation.parse("/login", name="login").name == "login"


class TestFullPath:
    def test_without_query(self) -> None:
        assert RouteLocation("/dashboard").full_path == "/dashboard"

    def test_with_query_keeps_slashes_readable(self) -> None:
        loc = RouteLocation("/login", {"redirect": "/dashboard"})
        assert loc.full_path == "/login?redirect=/dashboard"

    def test_str_is_full_path(self) -> None:
        loc = RouteLocation("/a", {"b": "c"})
        assert str(loc) == "/a?b=c"

    def test_parse_roundtrip_of_nested_redirect(self) -> None:
        inner = RouteLocation("/reports", {"year": "2024"})
        outer = RouteLocation("/login", {"redirect": inner.full_path})
        assert RouteLocation.parse(outer.full_path).query["redirect"] == "/reports?year=2024"


class TestCoerce:
    def test_location_passthrough(self) -> None:
        loc = RouteLocation("/x")
        assert RouteLocation.coerce(loc) is loc

    def test_string_parsed(self) -> None:
        assert RouteLocation.coerce("/x?y=1") == RouteLocation("/x", {"y": "1"})

    def test_rejects_other_types(self) -> None:
        with pytest.raises(TypeError, match="RouteLocation"):
            RouteLocation.coerce(42)  # type: ignore[arg-type]


class TestValueSemantics:
    def test_frozen(self) -> None:
        loc = RouteLocation("/x")
        with pytest.raises(AttributeError):
            loc.path = "/y"  # type: ignore[misc]

    def test_with_query_returns_copy(self) -> None:
        loc = RouteLocation("/login", {"a": "1"})
        updated = loc.with_query(redirect="/home")
        assert updated.query == {"a": "1", "redirect": "/home"}
        assert loc.query == {"a": "1"}

    def test_root(self) -> None:
        assert ROOT.full_path == "/"
