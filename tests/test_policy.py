"""Tests for AllowPolicy and Limits construction and validation."""

import pytest

from tamiz import DEFAULT_POLICY, AllowPolicy, Limits, PolicyError, TamizError
from tamiz.policy import DEFAULT_LINK_REL, DEFAULT_URL_ATTRIBUTES, FORBIDDEN_TAGS


def _policy(**overrides) -> AllowPolicy:
    fields = {
        "allowed_tags": ["b"],
        "allowed_attributes": [],
        "allowed_protocols": ["https"],
        "allowed_domains": [],
        "allowed_paths": ["/"],
    }
    fields.update(overrides)
    return AllowPolicy(**fields)


class TestDefaultPolicy:
    """The shipped policy matches the documented allowlists."""

    def test_tags(self) -> None:
        assert DEFAULT_POLICY.allowed_tags == frozenset(
            {"a", "b", "br", "em", "i", "li", "ol", "p", "span", "strong", "u", "ul"}
        )

    def test_attributes(self) -> None:
        assert DEFAULT_POLICY.allowed_attributes == frozenset({"class", "href", "id"})
        assert "style" not in DEFAULT_POLICY.allowed_attributes

    def test_protocols(self) -> None:
        assert DEFAULT_POLICY.allowed_protocols == frozenset({"http", "https", "mailto", "tel"})

    def test_paths(self) -> None:
        assert DEFAULT_POLICY.allowed_paths == frozenset(
            {"/", "/account", "/dashboard", "/orders", "/profile", "/settings"}
        )

    def test_defaults(self) -> None:
        assert DEFAULT_POLICY.default_redirect == "/"
        assert DEFAULT_POLICY.url_attributes == DEFAULT_URL_ATTRIBUTES
        assert DEFAULT_POLICY.force_link_rel == DEFAULT_LINK_REL
        assert DEFAULT_POLICY.drop_content_tags == frozenset()
        assert DEFAULT_POLICY.limits == Limits()

    def test_immutable(self) -> None:
        with pytest.raises(AttributeError):
            DEFAULT_POLICY.allowed_tags = frozenset({"script"})  # type: ignore[misc]


class TestNormalization:
    def test_iterables_become_frozensets(self) -> None:
        policy = _policy(allowed_tags=["b", "i"])
        assert isinstance(policy.allowed_tags, frozenset)

    def test_names_lowercased(self) -> None:
        policy = _policy(allowed_tags=["B", " I "], allowed_protocols=["HTTPS"])
        assert policy.allowed_tags == frozenset({"b", "i"})
        assert policy.allowed_protocols == frozenset({"https"})

    def test_domain_trailing_dot(self) -> None:
        assert _policy(allowed_domains=["Example.COM."]).allowed_domains == frozenset(
            {"example.com"}
        )

    def test_path_trailing_slash(self) -> None:
        policy = _policy(allowed_paths=["/", "/dashboard/"])
        assert policy.allowed_paths == frozenset({"/", "/dashboard"})

    def test_paths_keep_case(self) -> None:
        assert "/Reports" in _policy(allowed_paths=["/", "/Reports"]).allowed_paths


class TestValidation:
    """Unsafe or empty configurations fail at construction."""

    @pytest.mark.parametrize("field", ["allowed_tags", "allowed_protocols", "allowed_paths"])
    def test_empty_required_field(self, field: str) -> None:
        with pytest.raises(PolicyError) as exc_info:
            _policy(**{field: []})
        assert exc_info.value.field == field

    def test_empty_attributes_and_domains_are_fine(self) -> None:
        policy = _policy(allowed_attributes=[], allowed_domains=[])
        assert policy.allowed_attributes == frozenset()

    @pytest.mark.parametrize("tag", sorted(FORBIDDEN_TAGS))
    def test_forbidden_tag(self, tag: str) -> None:
        with pytest.raises(PolicyError, match=tag):
            _policy(allowed_tags=["b", tag])

    def test_forbidden_tag_any_case(self) -> None:
        with pytest.raises(PolicyError):
            _policy(allowed_tags=["SCRIPT"])

    @pytest.mark.parametrize("attribute", ["onclick", "onerror", "ONLOAD"])
    def test_event_handler_attribute(self, attribute: str) -> None:
        with pytest.raises(PolicyError, match="event handlers"):
            _policy(allowed_attributes=[attribute])

    def test_style_attribute(self) -> None:
        with pytest.raises(PolicyError, match="style"):
            _policy(allowed_attributes=["style"])

    @pytest.mark.parametrize("scheme", ["javascript", "data", "vbscript", "JavaScript"])
    def test_dangerous_protocol(self, scheme: str) -> None:
        with pytest.raises(PolicyError) as exc_info:
            _policy(allowed_protocols=["https", scheme])
        assert exc_info.value.field == "allowed_protocols"

    def test_protocol_with_colon(self) -> None:
        with pytest.raises(PolicyError, match="trailing ':'"):
            _policy(allowed_protocols=["https:"])

    @pytest.mark.parametrize("path", ["dashboard", "https://evil.com", "/a?b=1", "/a#x"])
    def test_bad_path(self, path: str) -> None:
        with pytest.raises(PolicyError) as exc_info:
            _policy(allowed_paths=["/", path])
        assert exc_info.value.field == "allowed_paths"

    def test_default_redirect_must_be_allowed(self) -> None:
        with pytest.raises(PolicyError) as exc_info:
            _policy(allowed_paths=["/home"])
        assert exc_info.value.field == "default_redirect"

    def test_policy_error_is_tamiz_error(self) -> None:
        with pytest.raises(TamizError):
            _policy(allowed_tags=[])

    def test_error_message(self) -> None:
        with pytest.raises(PolicyError) as exc_info:
            _policy(allowed_tags=[])
        assert str(exc_info.value) == "Policy field 'allowed_tags': must not be empty"


class TestLimits:
    def test_defaults(self) -> None:
        limits = Limits()
        assert limits.max_markup_length == 100_000
        assert limits.max_url_length == 2_048
        assert limits.max_depth == 64
        assert limits.max_decode_iterations == 5

    @pytest.mark.parametrize("field", ["max_markup_length", "max_url_length", "max_depth"])
    def test_must_be_positive(self, field: str) -> None:
        with pytest.raises(PolicyError) as exc_info:
            Limits(**{field: 0})
        assert exc_info.value.field == field

    def test_decode_iterations_minimum(self) -> None:
        with pytest.raises(PolicyError, match="at least 2"):
            Limits(max_decode_iterations=1)
        assert Limits(max_decode_iterations=2).max_decode_iterations == 2


class TestFromDict:
    """AllowPolicy.from_dict() builds policies from plain configuration."""

    def test_basic(self) -> None:
        policy = AllowPolicy.from_dict(
            {
                "allowed_tags": ["b", "i"],
                "allowed_attributes": ["class"],
                "allowed_protocols": ["https"],
                "allowed_domains": ["example.com"],
                "allowed_paths": ["/", "/home"],
            }
        )
        assert policy.allowed_tags == frozenset({"b", "i"})
        assert policy.allowed_paths == frozenset({"/", "/home"})

    def test_unknown_keys_ignored(self) -> None:
        policy = AllowPolicy.from_dict(
            {
                "allowed_tags": ["b"],
                "allowed_attributes": [],
                "allowed_protocols": ["https"],
                "allowed_domains": [],
                "allowed_paths": ["/"],
                "nonsense": True,
            }
        )
        assert policy.allowed_tags == frozenset({"b"})

    def test_nested_limits(self) -> None:
        policy = AllowPolicy.from_dict(
            {
                "allowed_tags": ["b"],
                "allowed_attributes": [],
                "allowed_protocols": ["https"],
                "allowed_domains": [],
                "allowed_paths": ["/"],
                "limits": {"max_depth": 8, "unknown": 1},
            }
        )
        assert policy.limits.max_depth == 8
        assert policy.limits.max_url_length == 2_048

    def test_validation_still_applies(self) -> None:
        with pytest.raises(PolicyError):
            AllowPolicy.from_dict(
                {
                    "allowed_tags": ["script"],
                    "allowed_attributes": [],
                    "allowed_protocols": ["https"],
                    "allowed_domains": [],
                    "allowed_paths": ["/"],
                }
            )
