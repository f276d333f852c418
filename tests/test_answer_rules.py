"""Tests for answer validation rules: parse_rule, check_rule."""

import pytest

from agentgen.errors import QuestionGraphError
from agentgen.utils.validator import Rule, check_rule, parse_rule


class TestParseRule:
    def test_none_means_no_rule(self):
        assert parse_rule(None) is None

    @pytest.mark.parametrize("tag", ["required", "email", "numeric"])
    def test_plain_tags(self, tag):
        assert parse_rule(tag) == Rule(tag)

    def test_min_length(self):
        rule = parse_rule("min-length:3")
        assert rule == Rule("min-length", 3)
        assert rule.tag == "min-length:3"

    def test_surrounding_whitespace_ignored(self):
        assert parse_rule("  required ") == Rule("required")

    @pytest.mark.parametrize("tag", ["min-length:", "min-length:abc", "min-length:-1"])
    def test_min_length_needs_integer(self, tag):
        with pytest.raises(QuestionGraphError, match="integer"):
            parse_rule(tag)

    @pytest.mark.parametrize("tag", ["url", "max-length:5", "Required"])
    def test_unknown_tag_raises(self, tag):
        with pytest.raises(QuestionGraphError, match="Unknown validation rule"):
            parse_rule(tag)

    @pytest.mark.parametrize("tag", ["", "   ", 5])
    def test_empty_or_non_string_raises(self, tag):
        with pytest.raises(QuestionGraphError):
            parse_rule(tag)


class TestCheckRule:
    def test_no_rule_passes_anything(self):
        assert check_rule("", None) is None

    def test_required(self):
        rule = Rule("required")
        assert check_rule("x", rule) is None
        assert check_rule("", rule) == "This field is required"
        assert check_rule("   ", rule) == "This field is required"
        assert check_rule(None, rule) == "This field is required"

    def test_required_list(self):
        rule = Rule("required")
        assert check_rule(["a"], rule) is None
        assert check_rule([], rule) == "This field is required"

    def test_required_false_is_an_answer(self):
        assert check_rule(False, Rule("required")) is None

    def test_min_length(self):
        rule = Rule("min-length", 3)
        assert check_rule("abc", rule) is None
        assert check_rule("ab", rule) == "Must be at least 3 characters"

    @pytest.mark.parametrize("value", ["dev@example.com", "a.b@c.io"])
    def test_valid_email(self, value):
        assert check_rule(value, Rule("email")) is None

    @pytest.mark.parametrize("value", ["dev", "dev@example", "dev @example.com", "dev@example.com\n"])
    def test_invalid_email(self, value):
        assert check_rule(value, Rule("email")) == "Must be a valid email address"

    @pytest.mark.parametrize("value", ["42", "-3", "+1.5", ".5", "80.", 90, 12.5, 1e20])
    def test_valid_numeric(self, value):
        assert check_rule(value, Rule("numeric")) is None

    @pytest.mark.parametrize("value", ["", "abc", "1e", "1.2.3", True, float("inf"), float("nan")])
    def test_invalid_numeric(self, value):
        assert check_rule(value, Rule("numeric")) == "Must be a valid number"
