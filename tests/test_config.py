"""Tests for header and whitelist configuration normalization."""

from __future__ import annotations

import logging

import pytest

from reverseproxy_auth.config import (
    DEFAULT_RULES,
    HeaderRule,
    ProxyAuthConfig,
    normalize_headers,
    parse_header_spec,
)
from reverseproxy_auth.errors import ConfigError
from reverseproxy_auth.whitelist import Whitelist


class TestHeaderRule:
    def test_key_defaults_to_header_name(self):
        assert HeaderRule("X-Forwarded-UserId").key == "X-Forwarded-UserId"

    def test_key_uses_alias(self):
        assert HeaderRule("X-Forwarded-UserId", alias="id").key == "id"

    def test_lookup_name_is_trimmed_and_lowercased(self):
        assert HeaderRule("  X-Forwarded-User ").lookup_name == "x-forwarded-user"

    def test_rule_is_immutable(self):
        rule = HeaderRule("X-Forwarded-User")
        with pytest.raises(AttributeError):
            rule.required = True  # type: ignore[misc]


class TestDefaultHeaders:
    def test_none_uses_default_rule(self):
        assert normalize_headers(None) == DEFAULT_RULES

    def test_empty_mapping_uses_default_rule(self):
        rules = normalize_headers({})
        assert rules == (HeaderRule("X-Forwarded-User", alias="username", required=True),)

    def test_default_logs_warning(self, caplog):
        with caplog.at_level(logging.WARNING, logger="reverseproxy_auth.config"):
            normalize_headers(None)
        assert any("X-Forwarded-User" in record.getMessage() for record in caplog.records)
        assert caplog.records[0].levelno == logging.WARNING

    def test_default_uses_injected_logger(self, caplog):
        custom = logging.getLogger("tests.custom")
        with caplog.at_level(logging.WARNING, logger="tests.custom"):
            normalize_headers({}, logger=custom)
        assert [record.name for record in caplog.records] == ["tests.custom"]

    def test_build_uses_injected_logger(self, caplog):
        custom = logging.getLogger("tests.custom")
        with caplog.at_level(logging.WARNING, logger="tests.custom"):
            ProxyAuthConfig.build(logger=custom)
        assert [record.name for record in caplog.records] == ["tests.custom"]

    def test_explicit_headers_do_not_warn(self, caplog):
        with caplog.at_level(logging.WARNING):
            normalize_headers({"X-Forwarded-User": True})
        assert caplog.records == []


class TestRuleShapes:
    def test_boolean_sets_required(self):
        rules = normalize_headers({"A": True, "B": False})
        assert rules == (HeaderRule("A", required=True), HeaderRule("B", required=False))

    def test_string_is_optional_alias(self):
        assert normalize_headers({"X-Forwarded-UserId": "id"}) == (HeaderRule("X-Forwarded-UserId", alias="id"),)

    def test_mapping_taken_as_is(self):
        rules = normalize_headers({"X-Email": {"alias": "email", "required": True}})
        assert rules == (HeaderRule("X-Email", alias="email", required=True),)

    def test_mapping_missing_fields_default(self):
        assert normalize_headers({"X-Email": {}}) == (HeaderRule("X-Email"),)

    def test_header_rule_is_rekeyed(self):
        rules = normalize_headers({"X-Email": HeaderRule("ignored", alias="email", required=True)})
        assert rules == (HeaderRule("X-Email", alias="email", required=True),)

    def test_none_value_is_optional(self):
        assert normalize_headers({"X-Groups": None}) == (HeaderRule("X-Groups"),)

    def test_empty_alias_means_no_alias(self):
        assert normalize_headers({"X-Groups": ""})[0].alias is None

    def test_order_is_preserved(self):
        rules = normalize_headers({"C": True, "A": "a", "B": False})
        assert [rule.header_name for rule in rules] == ["C", "A", "B"]


class TestInvalidRules:
    @pytest.mark.parametrize(
        "headers",
        [
            {"X-Forwarded-User": 5},
            {"X-Forwarded-User": ["username"]},
            {"X-Forwarded-User": {"alias": "username", "optional": True}},
            {"X-Forwarded-User": {"required": "yes"}},
            {"X-Forwarded-User": {"alias": 7}},
            {"": True},
            {"   ": True},
        ],
    )
    def test_rejected(self, headers):
        with pytest.raises(ConfigError):
            normalize_headers(headers)

    def test_non_mapping_headers(self):
        with pytest.raises(ConfigError, match="mapping"):
            normalize_headers(["X-Forwarded-User"])  # type: ignore[arg-type]


class TestParseHeaderSpec:
    def test_name_only(self):
        assert parse_header_spec("X-Forwarded-User") == ("X-Forwarded-User", HeaderRule("X-Forwarded-User"))

    def test_alias_and_required(self):
        name, rule = parse_header_spec("X-Forwarded-User:username:required")
        assert name == "X-Forwarded-User"
        assert rule == HeaderRule("X-Forwarded-User", alias="username", required=True)

    def test_required_without_alias(self):
        _, rule = parse_header_spec("X-Remote-Groups:REQUIRED")
        assert rule == HeaderRule("X-Remote-Groups", required=True)

    def test_optional_flag(self):
        _, rule = parse_header_spec(" X-Forwarded-UserId : id : optional ")
        assert rule == HeaderRule("X-Forwarded-UserId", alias="id", required=False)

    def test_missing_name(self):
        with pytest.raises(ConfigError, match="missing header name"):
            parse_header_spec(":username")

    def test_two_aliases(self):
        with pytest.raises(ConfigError):
            parse_header_spec("X-Forwarded-User:a:b")


class TestProxyAuthConfig:
    def test_defaults(self):
        config = ProxyAuthConfig()
        assert config.headers == DEFAULT_RULES
        assert config.whitelist is None

    def test_build_compiles_whitelist(self):
        config = ProxyAuthConfig.build({"X-Forwarded-User": True}, "10.0.0.0/8")
        assert isinstance(config.whitelist, Whitelist)
        assert config.whitelist.contains("10.8.4.1")

    def test_from_mapping(self):
        config = ProxyAuthConfig.from_mapping(
            {
                "headers": {
                    "X-Forwarded-User": {"alias": "username", "required": True},
                    "X-Forwarded-UserId": {"alias": "id", "required": False},
                },
                "whitelist": "127.0.0.1/0",
            }
        )
        assert [rule.key for rule in config.headers] == ["username", "id"]
        assert config.whitelist is not None

    def test_from_mapping_none(self):
        assert ProxyAuthConfig.from_mapping(None).headers == DEFAULT_RULES

    def test_from_mapping_empty_whitelist_is_ignored(self):
        assert ProxyAuthConfig.from_mapping({"whitelist": ""}).whitelist is None

    def test_from_mapping_unknown_option(self):
        with pytest.raises(ConfigError, match="realm"):
            ProxyAuthConfig.from_mapping({"realm": "Users"})

    def test_from_mapping_invalid_whitelist(self):
        with pytest.raises(ConfigError, match="whitelist"):
            ProxyAuthConfig.from_mapping({"whitelist": "not-an-address"})

    def test_config_is_immutable(self):
        config = ProxyAuthConfig()
        with pytest.raises(AttributeError):
            config.whitelist = None  # type: ignore[misc]


class TestFromEnv:
    def test_reads_headers_and_whitelist(self):
        config = ProxyAuthConfig.from_env(
            {
                "REVERSEPROXY_AUTH_HEADERS": "X-Forwarded-User:username:required, X-Forwarded-UserId:id",
                "REVERSEPROXY_AUTH_WHITELIST": "10.0.0.0/8",
            }
        )
        assert config.headers == (
            HeaderRule("X-Forwarded-User", alias="username", required=True),
            HeaderRule("X-Forwarded-UserId", alias="id"),
        )
        assert str(config.whitelist) == "10.0.0.0/8"

    def test_empty_environment_uses_defaults(self):
        config = ProxyAuthConfig.from_env({})
        assert config.headers == DEFAULT_RULES
        assert config.whitelist is None

    def test_custom_prefix(self):
        config = ProxyAuthConfig.from_env({"APP_HEADERS": "X-Remote-User:user"}, prefix="APP_")
        assert config.headers == (HeaderRule("X-Remote-User", alias="user"),)

    def test_reads_os_environ(self, monkeypatch):
        monkeypatch.setenv("REVERSEPROXY_AUTH_WHITELIST", "127.0.0.1")
        monkeypatch.delenv("REVERSEPROXY_AUTH_HEADERS", raising=False)
        assert ProxyAuthConfig.from_env().whitelist is not None

    def test_invalid_spec(self):
        with pytest.raises(ConfigError):
            ProxyAuthConfig.from_env({"REVERSEPROXY_AUTH_HEADERS": "X-A:a:b"})
