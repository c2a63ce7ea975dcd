"""
Tests for ScanConfig validation and mapping conversion.
"""
import pytest

from linkscan.config import BasicAuth, ScanConfig
from linkscan.errors import InvalidConfig


class TestValidate:
    def test_defaults_are_valid(self):
        config = ScanConfig()
        assert config.validate() is config
        assert config.same_origin_only
        assert config.auth is None

    def test_zero_depth_is_valid(self):
        ScanConfig(max_depth=0).validate()

    @pytest.mark.parametrize("kwargs", [
        {"max_depth": -1},
        {"concurrency": 0},
        {"max_urls": 0},
        {"timeout_ms": -5},
        {"total_timeout_ms": 0},
        {"regex_exclusions": ("(",)},
        {"exclude_selectors": ("a[",)},
    ])
    def test_rejects(self, kwargs):
        with pytest.raises(InvalidConfig):
            ScanConfig(**kwargs).validate()

    def test_timeouts_in_seconds(self):
        config = ScanConfig(timeout_ms=1500, total_timeout_ms=60_000)
        assert config.timeout_s == 1.5
        assert config.total_timeout_s == 60.0
        assert ScanConfig().total_timeout_s is None

    def test_password_hidden_from_repr(self):
        assert "secret" not in repr(BasicAuth("user", "secret"))


class TestFromMapping:
    def test_camel_case_keys(self):
        config = ScanConfig.from_mapping({
            "maxDepth": 2,
            "maxUrls": 50,
            "concurrency": 4,
            "requestTimeout": 10_000,
            "totalTimeoutMs": 120_000,
            "sameOriginOnly": False,
            "userAgent": "Bot/1",
            "auth": {"username": "u", "password": "p"},
            "regexExclusions": ["/private", "", "  "],
            "wildcardExclusions": ["*.pdf"],
            "cssSelectors": ["nav", ""],
        })
        assert config.max_depth == 2
        assert config.max_urls == 50
        assert config.concurrency == 4
        assert config.timeout_ms == 10_000
        assert config.total_timeout_ms == 120_000
        assert config.same_origin_only is False
        assert config.user_agent == "Bot/1"
        assert config.auth == BasicAuth("u", "p")
        assert config.regex_exclusions == ("/private",)
        assert config.wildcard_exclusions == ("*.pdf",)
        assert config.exclude_selectors == ("nav",)

    def test_field_names_and_unknown_keys(self):
        config = ScanConfig.from_mapping({"max_depth": 1, "scanSameLinkOnce": True, "theme": "dark"})
        assert config.max_depth == 1

    def test_inverted_flags(self):
        config = ScanConfig.from_mapping({"excludeSubdomains": False, "skipExternalDomains": True})
        assert config.include_subdomains is True
        assert config.check_external is False

    def test_incomplete_auth_is_dropped(self):
        assert ScanConfig.from_mapping({"auth": {"username": "", "password": ""}}).auth is None

    def test_null_values_keep_defaults(self):
        assert ScanConfig.from_mapping({"maxDepth": None}).max_depth == ScanConfig().max_depth


def test_valid_selectors_pass():
    ScanConfig(exclude_selectors=("nav.menu", "a.ad", "footer > ul")).validate()
