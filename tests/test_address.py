"""Tests for mailtools.address."""

from __future__ import annotations

import pytest
from structlog.testing import capture_logs

from mailtools.address import Address, format_addresses, parse_addresses
from mailtools.errors import TokenizeError


class TestParseAddresses:
    def test_phrase_and_angle_address(self):
        found = parse_addresses('"Mr. Foo" <foo@bar.com>, Peter Orbaek <poe@daimi.aau.dk>')
        assert found == [
            Address(phrase="Mr. Foo", address="foo@bar.com"),
            Address(phrase="Peter Orbaek", address="poe@daimi.aau.dk"),
        ]

    def test_address_with_comment(self):
        (found,) = parse_addresses("foo@bar.com (Mr Foo)")
        assert found.address == "foo@bar.com"
        assert found.comment == "Mr Foo"
        assert found.phrase == ""
        assert found.name() == "Mr Foo"

    def test_bare_list(self):
        found = parse_addresses("a@x.com, b@y.com")
        assert [a.address for a in found] == ["a@x.com", "b@y.com"]

    def test_semicolon_separates(self):
        assert [a.address for a in parse_addresses("a@b; c@d")] == ["a@b", "c@d"]

    def test_second_bare_word_starts_new_address(self):
        assert [a.address for a in parse_addresses("foo bar")] == ["foo", "bar"]

    def test_domain_literal(self):
        (found,) = parse_addresses("user@[192.0.2.1]")
        assert found.address == "user@[192.0.2.1]"

    def test_comment_only(self):
        assert parse_addresses("(just a comment)") == [Address(comment="just a comment")]

    def test_empty_and_none(self):
        assert parse_addresses("") == []
        assert parse_addresses(None) == []

    def test_fragments_skip_none(self):
        found = parse_addresses("a@b", None, "c@d")
        assert [a.address for a in found] == ["a@b", "c@d"]

    def test_unmatched_open_angle_is_logged(self):
        with capture_logs() as logs:
            found = parse_addresses("Foo <foo@bar.com, b@c")
        assert found == [
            Address(phrase="Foo", address="foo@bar.com"),
            Address(address="b@c"),
        ]
        assert any(
            e["event"] == "unmatched_angle_brackets" and e["log_level"] == "warning"
            for e in logs
        )

    def test_stray_close_angle_is_ignored(self):
        with capture_logs() as logs:
            found = parse_addresses("foo@bar.com>")
        assert [a.address for a in found] == ["foo@bar.com"]
        assert logs == []

    def test_unterminated_comment_raises(self):
        with pytest.raises(TokenizeError):
            parse_addresses("foo@bar.com (unterminated")

    def test_escaped_quote_in_phrase_survives(self):
        (found,) = parse_addresses(r'"say \"hi\"" <a@b>')
        assert found.phrase == r"say \"hi\""
        assert found.format() == r'"say \"hi\"" <a@b>'


class TestFormat:
    def test_quotes_phrase_with_specials(self):
        assert Address("Mr. Foo", "foo@bar.com").format() == '"Mr. Foo" <foo@bar.com>'

    def test_plain_phrase(self):
        assert Address("Peter Orbaek", "poe@x").format() == "Peter Orbaek <poe@x>"

    def test_address_and_comment(self):
        assert Address(address="foo@bar.com", comment="Mr Foo").format() == "foo@bar.com (Mr Foo)"

    def test_comment_already_parenthesized(self):
        assert Address(address="a@b", comment="(already)").format() == "a@b (already)"

    def test_comment_with_two_groups_is_wrapped(self):
        assert Address(address="a@b", comment="(a) b").format() == "a@b ((a) b)"

    def test_nested_comment_round_trip(self):
        (found,) = parse_addresses("x@y ((a))")
        assert found.comment == "((a))"
        assert found.format() == "x@y ((a))"
        assert parse_addresses(found.format()) == [found]

    def test_comment_with_inner_group_round_trip(self):
        (found,) = parse_addresses("x@y ((a) b)")
        assert found.comment == "(a) b"
        assert found.format() == "x@y ((a) b)"

    def test_phrase_without_address(self):
        assert Address(phrase="Name").format() == "Name"

    def test_empty(self):
        assert Address().format() == ""
        assert not Address()

    def test_format_addresses_skips_empty(self):
        found = [Address("A", "a@x"), Address(), Address(address="b@y")]
        assert format_addresses(found) == "A <a@x>, b@y"

    def test_round_trip(self):
        line = (
            '"Mr. Foo" <foo@bar.com>, Peter Orbaek <poe@daimi.aau.dk>, '
            "bare@example.org (Bare Person)"
        )
        found = parse_addresses(line)
        assert format_addresses(found) == line
        assert parse_addresses(format_addresses(found)) == found


class TestName:
    def test_empty(self):
        assert Address().name() is None

    def test_upper_case_quoted_phrase(self):
        assert Address(phrase='"JOHN SMITH"').name() == "John Smith"

    def test_last_comma_first(self):
        assert Address(phrase="Smith, John").name() == "John Smith"

    def test_mc_prefix(self):
        assert Address(phrase="mary mcdonald").name() == "Mary McDonald"

    def test_o_apostrophe(self):
        assert Address(phrase="peter o'toole").name() == "Peter O'Toole"

    def test_roman_numerals(self):
        assert Address(phrase="henry viii").name() == "Henry VIII"

    def test_mixed_case_untouched(self):
        assert Address(phrase="Mary deVries").name() == "Mary deVries"

    def test_numeric_comment(self):
        assert Address(comment="123456").name() is None

    def test_dotted_local_part(self):
        assert Address(address="john.doe@example.com").name() == "John Doe"

    def test_x400_address(self):
        address = Address(address="/g=John/s=Smith/o=acme/@gateway.example")
        assert address.name() == "John Smith"

    def test_encoded_word_is_skipped(self):
        address = Address(phrase="=?utf-8?q?J=C3=B6rg?=", address="joerg@example.com")
        assert address.name() is None


class TestParts:
    def test_host_and_user(self):
        address = Address(address="foo@bar.com")
        assert address.host() == "bar.com"
        assert address.user() == "foo"

    def test_no_domain(self):
        address = Address(address="postmaster")
        assert address.host() is None
        assert address.user() == "postmaster"

    def test_setters_return_old_value(self):
        address = Address("A", "a@x", "c")
        assert address.set_phrase("B") == "A"
        assert address.set_address("b@x") == "a@x"
        assert address.set_comment("") == "c"
        assert address.format() == "B <b@x>"
