"""Tests for slugs, URL resolution and template expansion."""

import re

import pytest

from screenboard.url_utils import expand_template, file_safe_name, resolve_url, slugify


class TestSlugify:
    """Tests for slugify and file_safe_name."""

    @pytest.mark.parametrize("value", [
        "Home Page",
        "  --Settings / Billing--  ",
        "Ünïcode & Friends!!",
        "a" * 200,
        "x-" * 60,
        "",
    ])
    def test_idempotent(self, value):
        assert slugify(slugify(value)) == slugify(value)
        assert file_safe_name(file_safe_name(value)) == file_safe_name(value)

    @pytest.mark.parametrize("value", ["Home Page", "--a--b--", "x-" * 60, "Save & Continue!"])
    def test_output_shape(self, value):
        for result, limit in ((slugify(value), 64), (file_safe_name(value), 80)):
            assert re.fullmatch(r"[a-z0-9-]{0,%d}" % limit, result)
            assert not result.startswith("-")
            assert not result.endswith("-")

    def test_collapses_runs(self):
        assert slugify("Save & Continue!") == "save-continue"

    def test_length_limits(self):
        assert len(slugify("a" * 200)) == 64
        assert len(file_safe_name("a" * 200)) == 80

    def test_truncation_never_leaves_trailing_hyphen(self):
        value = "a" * 63 + " b"
        assert slugify(value) == "a" * 63


class TestResolveUrl:
    """Tests for resolve_url."""

    def test_relative_against_base(self):
        assert resolve_url("http://localhost:5173", "/pricing") == "http://localhost:5173/pricing"

    def test_absolute_unchanged(self):
        assert resolve_url("http://localhost:5173", "https://example.com/x") == "https://example.com/x"

    def test_no_base(self):
        assert resolve_url(None, "/pricing") == "/pricing"


class TestExpandTemplate:
    """Tests for expand_template."""

    def test_no_params(self):
        assert expand_template("/x") == ["/x"]
        assert expand_template("/x", {}) == ["/x"]

    def test_colon_placeholder(self):
        assert expand_template("/item/:id", {"id": ["a", "b"]}) == ["/item/a", "/item/b"]

    def test_brace_placeholder(self):
        assert expand_template("/item/{id}", {"id": ["1"]}) == ["/item/1"]

    def test_cartesian_product_order(self):
        urls = expand_template("/:org/{repo}", {"org": ["a", "b"], "repo": ["x", "y"]})
        assert urls == ["/a/x", "/a/y", "/b/x", "/b/y"]

    def test_replaces_globally(self):
        assert expand_template("/:id/:id/{id}", {"id": ["7"]}) == ["/7/7/7"]

    def test_colon_placeholder_is_word_bounded(self):
        assert expand_template("/:id/:idx", {"id": ["7"]}) == ["/7/:idx"]

    def test_values_are_literal(self):
        assert expand_template("/q/:term", {"term": [r"a\1b"]}) == [r"/q/a\1b"]
