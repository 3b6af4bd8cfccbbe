"""
Unit tests for allowed-page matching.
"""

import pytest

from fleetdash.app.services.path_matcher import (
    is_allowed,
    is_entry_page,
    is_forbidden_page,
    is_public_page,
    normalize_path,
    pattern_matches,
)


class TestNormalizePath:
    def test_strips_trailing_slash(self):
        assert normalize_path("/dashboard/auta/") == "/dashboard/auta"

    def test_strips_query_string(self):
        assert normalize_path("/dashboard/auta?tab=stk") == "/dashboard/auta"

    def test_root_is_kept(self):
        assert normalize_path("/") == "/"


class TestIsAllowed:
    @pytest.mark.parametrize("path", ["/", "/homepage", "/dashboard/admin/users", "/anything/at/all"])
    def test_wildcard_allows_everything(self, path):
        assert is_allowed(path, ["*", "/homepage"])
        assert is_allowed(path, ["/homepage", "*"])

    def test_exact_match(self):
        assert is_allowed("/dashboard/auta", ["/dashboard/auta"])

    def test_trailing_slash_is_ignored(self):
        assert is_allowed("/dashboard/auta/", ["/dashboard/auta"])
        assert is_allowed("/dashboard/auta", ["/dashboard/auta/"])

    def test_query_string_is_ignored(self):
        assert is_allowed("/dashboard/auta?id=7", ["/dashboard/auta"])

    def test_two_segment_pattern_covers_sub_routes(self):
        assert is_allowed("/dashboard/auta/42", ["/dashboard/auta"])
        assert is_allowed("/dashboard/auta/42/edit", ["/dashboard/auta"])

    def test_single_segment_pattern_is_never_a_prefix(self):
        assert not is_allowed("/dashboard/auta", ["/dashboard"])
        assert not is_allowed("/homepage/news", ["/homepage"])

    def test_prefix_requires_segment_boundary(self):
        assert not is_allowed("/dashboard/autax", ["/dashboard/auta"])

    def test_sibling_paths_are_not_covered(self):
        assert not is_allowed("/dashboard/grafy", ["/dashboard/auta"])

    @pytest.mark.parametrize("allowed_pages", [[], None, ()])
    def test_empty_grant_denies(self, allowed_pages):
        assert not is_allowed("/homepage", allowed_pages)

    def test_any_pattern_may_match(self):
        assert is_allowed("/homepage", ["/dashboard/auta", "/homepage"])


def test_pattern_matches_expects_normalized_request():
    assert pattern_matches("/dashboard/auta/mapa", "/dashboard/auta/")
    assert not pattern_matches("/dashboard", "/dashboard/auta")


def test_entry_pages():
    assert is_public_page("/") and is_public_page("/login/") and is_public_page("/login?callbackUrl=%2F")
    assert is_forbidden_page("/forbidden")
    assert all(is_entry_page(path) for path in ("/", "/login", "/forbidden/"))
    assert not is_entry_page("/homepage")
    assert not is_entry_page("/login/reset")
