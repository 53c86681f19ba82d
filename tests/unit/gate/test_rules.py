"""Tests for endpoint normalisation, allow-list matching and rule parsing."""

import pytest

from forexnepal.db.models.api_access import ApiAccessSetting
from forexnepal.domain.enums import AccessLevel
from forexnepal.gate.rules import (
    DisabledRule,
    PublicRule,
    RestrictedRule,
    build_rule,
    match_any,
    matches_pattern,
    normalize_endpoint,
    rule_from_dict,
    rule_from_setting,
    rule_to_dict,
)


class TestNormalizeEndpoint:
    @pytest.mark.parametrize(
        "path, expected",
        [
            ("/api/posts/hello-world", "/api/posts/:slug"),
            ("/api/rates/date/2024-01-01", "/api/rates/date/:date"),
            ("/api/archive/detail/2024-01-01", "/api/archive/detail/:date"),
            ("/api/historical-rates", "/api/historical-rates"),
            ("/api/historical-rates/", "/api/historical-rates"),
            ("/api/posts", "/api/posts"),
            ("/api/latest-rates?foo=bar", "/api/latest-rates"),
        ],
    )
    def test_normalize(self, path, expected):
        assert normalize_endpoint(path) == expected


class TestPatternMatching:
    def test_wildcard_subdomain(self):
        assert matches_pattern("foo.example.com", "*.example.com")
        assert matches_pattern("a.b.example.com", "*.example.com")

    def test_wildcard_does_not_match_suffix_attack(self):
        assert not matches_pattern("example.com.evil.com", "*.example.com")
        assert not matches_pattern("notexample.com", "*.example.com")

    def test_wildcard_excludes_bare_domain(self):
        assert not matches_pattern("example.com", "*.example.com")

    def test_universal_and_exact(self):
        assert matches_pattern("203.0.113.9", "*")
        assert matches_pattern("203.0.113.9", "203.0.113.9")
        assert not matches_pattern("203.0.113.10", "203.0.113.9")

    def test_case_insensitive(self):
        assert matches_pattern("Foo.Example.COM", "*.example.com")

    def test_missing_identifier_never_matches(self):
        assert not matches_pattern(None, "*")
        assert not match_any("", ["*"])

    def test_match_any(self):
        assert match_any("foo.example.com", ["198.51.100.1", "*.example.com"])
        assert not match_any("foo.example.org", ["198.51.100.1", "*.example.com"])


class TestBuildRule:
    def test_public(self):
        rule = build_rule("/api/settings", "public", "[]", 10)
        assert rule == PublicRule(endpoint="/api/settings", quota_per_hour=10)

    def test_restricted_parses_allow_list(self):
        rule = build_rule("/api/posts", "restricted", '["*.example.com", " 1.2.3.4 ", ""]', -1)
        assert isinstance(rule, RestrictedRule)
        assert rule.allow_list == ("*.example.com", "1.2.3.4")

    def test_malformed_allow_list_is_empty(self):
        rule = build_rule("/api/posts", "restricted", "{not json", -1)
        assert isinstance(rule, RestrictedRule)
        assert rule.allow_list == ()

    def test_non_array_allow_list_is_empty(self):
        rule = build_rule("/api/posts", "restricted", '{"ip": "1.2.3.4"}', -1)
        assert rule.allow_list == ()

    def test_disabled(self):
        assert build_rule("/api/posts", "disabled") == DisabledRule(endpoint="/api/posts")

    def test_unknown_level(self):
        assert build_rule("/api/posts", "secret") is None

    def test_from_setting_row(self):
        setting = ApiAccessSetting(
            endpoint="/api/latest-rates",
            access_level=AccessLevel.RESTRICTED.value,
            allowed_rules='["*"]',
            quota_per_hour=100,
        )
        rule = rule_from_setting(setting)
        assert rule == RestrictedRule(endpoint="/api/latest-rates", allow_list=("*",), quota_per_hour=100)

    def test_dict_round_trip(self):
        for rule in (
            PublicRule("/a", 5),
            RestrictedRule("/b", ("*.example.com",), 3),
            DisabledRule("/c"),
        ):
            assert rule_from_dict(rule_to_dict(rule)) == rule
