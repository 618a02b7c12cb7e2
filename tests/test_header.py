"""Tests for mailtools.header.MailHeader."""

from __future__ import annotations

import io

import pytest
from structlog.testing import capture_logs

from mailtools.config import HeaderSettings, MailFromPolicy
from mailtools.errors import ConfigError
from mailtools.folding import FoldLengthTable
from mailtools.header import MailHeader

ADDRESS_LIST = "a@x.com, b@x.com, c@x.com, d@x.com, e@x.com"
FOLDED_AT_20 = "a@x.com,\n b@x.com,\n c@x.com,\n d@x.com,\n e@x.com\n"


class TestConstruction:
    def test_from_lines(self, header_lines):
        header = MailHeader(header_lines)
        assert header.tags() == ["From ", "Received", "Subject", "To", "X-Mailer"]
        assert len(header) == 6
        assert header.as_string() == "".join(header_lines[:8])

    def test_source_list_is_not_consumed(self, header_lines):
        MailHeader(header_lines)
        assert len(header_lines) == 10

    def test_extract_consumes_header_and_blank(self, header_lines):
        MailHeader().extract(header_lines)
        assert header_lines == ["Body line 1\n"]

    def test_from_stream(self, header_lines):
        stream = io.StringIO("".join(header_lines))
        header = MailHeader(stream)
        assert header.as_string() == "".join(header_lines[:8])
        assert stream.read() == "Body line 1\n"

    def test_rejects_other_sources(self):
        with pytest.raises(TypeError):
            MailHeader(42)

    def test_settings_supply_defaults(self):
        header = MailHeader(settings=HeaderSettings(modify=True, fold_length=20))
        assert header.modify is True
        assert header.fold_length == 20

    def test_dup_is_independent(self, header_lines):
        header = MailHeader(header_lines)
        dup = header.dup()
        dup.add("X-Extra", "1")
        assert header.count("X-Extra") == 0
        assert dup.as_string() == header.as_string() + "X-Extra: 1\n"
        assert dup.count("X-Mailer") == 2


class TestLookup:
    def test_get_is_case_insensitive(self, header_lines):
        header = MailHeader(header_lines)
        assert header.get("subject") == "Hello there\n"
        assert header.get("SUBJECT") == "Hello there\n"

    def test_get_keeps_folding(self, header_lines):
        header = MailHeader(header_lines)
        assert header.get("To") == "a@example.com,\n b@example.com\n"

    def test_repeated_tags(self, header_lines):
        header = MailHeader(header_lines)
        assert header.count("x-mailer") == 2
        assert header.get("X-Mailer", 1) == "second\n"
        assert header.get_all("X-Mailer") == ["test\n", "second\n"]
        assert header.get("X-Mailer", 5) is None

    def test_missing_tag(self, header_lines):
        header = MailHeader(header_lines)
        assert header.get("Nope") is None
        assert header.get_all("Nope") == []
        assert header.count("Nope") == 0

    def test_envelope_line(self, header_lines):
        header = MailHeader(header_lines)
        assert header.get("From ") == "sender@example.com Mon Jan  1 00:00:00 2024\n"


class TestAdd:
    def test_add_returns_value(self):
        header = MailHeader()
        assert header.add("x-foo", "bar") == "bar\n"
        assert header.as_string() == "x-foo: bar\n"
        assert header.get("X-FOO") == "bar\n"

    def test_add_with_modify_recases_tag(self):
        header = MailHeader(modify=True)
        header.add("x-foo", "bar")
        assert header.as_string() == "X-Foo: bar\n"

    def test_add_complete_line(self):
        header = MailHeader()
        header.add(None, "Subject: hi")
        assert header.get("Subject") == "hi\n"

    def test_add_positions(self):
        header = MailHeader(["A: 1\n", "B: 2\n"])
        header.add("C", "3", -2)
        header.add("X-First", "0", 0)
        assert header.as_string() == "X-First: 0\nA: 1\nC: 3\nB: 2\n"

    def test_index_follows_header_order(self):
        header = MailHeader(["X: 1\n", "Y: 2\n", "X: 3\n"])
        header.add("X", "0", 0)
        assert header.get_all("X") == ["0\n", "1\n", "3\n"]

    @pytest.mark.parametrize("tag", ["Bad Tag", "Bad:Tag", "X\x01Y"])
    def test_bad_tag_is_rejected(self, tag):
        header = MailHeader()
        with capture_logs() as logs:
            assert header.add(tag, "x") is None
        assert len(header) == 0
        assert [e["event"] for e in logs] == ["bad_field_name"]

    def test_add_folds_when_modifying(self):
        header = MailHeader(modify=True, fold_length=20)
        assert header.add("To", ADDRESS_LIST) == FOLDED_AT_20
        assert header.get("To") == FOLDED_AT_20


class TestReplace:
    def test_replace_in_place(self):
        header = MailHeader(["Subject: old\n", "X: 1\n"])
        assert header.replace("subject", "new") == "new\n"
        assert header.as_string() == "subject: new\nX: 1\n"

    def test_replace_missing_appends(self):
        header = MailHeader(["X: 1\n"])
        header.replace("Y", "2")
        assert header.as_string() == "X: 1\nY: 2\n"

    def test_replace_by_index(self):
        header = MailHeader(["X: 1\n", "X: 2\n"])
        header.replace("X", "two", 1)
        assert header.get_all("X") == ["1\n", "two\n"]


class TestCombine:
    def test_merges_into_first_position(self):
        header = MailHeader(["X: 1\n", "Y: a\n", "X: 2\n", "X: 3\n"])
        assert header.combine("x", ", ") == "X: 1, 2, 3\n"
        assert header.as_string() == "X: 1, 2, 3\nY: a\n"
        assert header.count("X") == 1

    def test_single_line_unchanged(self):
        header = MailHeader(["X: 1\n"])
        assert header.combine("X") == "X: 1\n"

    def test_missing(self):
        assert MailHeader().combine("X") is None


class TestDelete:
    def test_delete_one(self):
        header = MailHeader(["X: 1\n", "Y: a\n", "X: 2\n"])
        assert header.delete("x", 0) == ["1\n"]
        assert header.as_string() == "Y: a\nX: 2\n"
        assert header.count("X") == 1

    def test_delete_all(self):
        header = MailHeader(["X: 1\n", "Y: a\n", "X: 2\n"])
        assert header.delete("X") == ["1\n", "2\n"]
        assert header.tags() == ["Y"]
        assert header.delete("Nope") == []

    def test_index_rebuilt_after_delete(self):
        header = MailHeader(["X: 1\n", "Y: a\n"])
        header.delete("X")
        header.add("X", "3", 0)
        assert header.as_string() == "X: 3\nY: a\n"
        assert header.get("X") == "3\n"

    def test_cleanup_drops_empty_lines(self):
        header = MailHeader(["Subject: \n", "X: 1\n", "Cc:\n"])
        header.cleanup()
        assert header.as_string() == "X: 1\n"
        assert header.tags() == ["X"]

    def test_cleanup_limited_to_tags(self):
        header = MailHeader(["Subject: \n", "Cc:\n"])
        header.cleanup("cc")
        assert header.tags() == ["Subject"]


class TestFolding:
    def test_unfold_one_tag(self, header_lines):
        header = MailHeader(header_lines)
        header.unfold("to")
        assert header.get("To") == "a@example.com, b@example.com\n"
        assert "\n\tby" in header.get("Received")

    def test_unfold_all(self, header_lines):
        header = MailHeader(header_lines)
        header.unfold()
        assert header.get("Received") == (
            "from mail.example.com by mx.example.org; Mon, 1 Jan 2024 00:00:00 +0000\n"
        )

    def test_unfold_collapses_all_leading_blanks(self):
        header = MailHeader(["X-Note: a\n", "      b\n"])
        assert header.unfold().get("X-Note") == "a b\n"

    def test_fold_length_precedence(self):
        defaults = FoldLengthTable({"To": 30})
        header = MailHeader(modify=True, fold_length=79, defaults=defaults)
        header.add("To", ADDRESS_LIST)
        assert header.get("To") == "a@x.com, b@x.com,\n c@x.com, d@x.com, e@x.com\n"

        assert header.set_fold_length(20, "To") is None
        header.fold()
        assert header.get("To") == FOLDED_AT_20

        header.fold(79)
        assert header.get("To") == ADDRESS_LIST + "\n"

    def test_fold_length_is_clamped(self):
        header = MailHeader()
        header.fold_length = 10
        assert header.fold_length == 20
        assert header.set_fold_length(50) == 20

    def test_header_folds_when_modifying(self):
        header = MailHeader(modify=True, fold_length=20)
        lines = header.header(["To: " + ADDRESS_LIST + "\n", "\n", "body\n"])
        assert lines == ["To: " + FOLDED_AT_20]


class TestMailFrom:
    lines = ["From a@b Mon Jan 1 2024\n", "Subject: x\n"]

    def test_keep(self):
        header = MailHeader(self.lines)
        assert header.tags() == ["From ", "Subject"]

    def test_coerce(self):
        header = MailHeader(self.lines, mail_from="coerce")
        assert header.get("Mail-From") == "a@b Mon Jan 1 2024\n"
        assert header.count("From ") == 0

    def test_ignore(self):
        header = MailHeader(self.lines, mail_from=MailFromPolicy.IGNORE)
        assert header.tags() == ["Subject"]

    def test_error_logs_and_drops(self):
        with capture_logs() as logs:
            header = MailHeader(self.lines, mail_from="ERROR")
        assert header.tags() == ["Subject"]
        assert any(
            e["event"] == "unadorned_from_ignored" and e["log_level"] == "error"
            for e in logs
        )

    def test_bad_choice(self):
        with pytest.raises(ConfigError, match="bad Mail-From choice"):
            MailHeader(mail_from="sometimes")
        with pytest.raises(ConfigError):
            MailHeader().set_mail_from("nope")


class TestOutput:
    def test_header_hashref(self):
        header = MailHeader()
        result = header.header_hashref(
            {"To": ["you@somewhere", "me@localhost"], "From": "Tobias <tobix@cpan.org>"}
        )
        assert result == {
            "To": ["you@somewhere\n", "me@localhost\n"],
            "From": ["Tobias <tobix@cpan.org>\n"],
        }

    def test_write(self, header_lines):
        header = MailHeader(header_lines)
        buf = io.StringIO()
        header.write(buf)
        assert buf.getvalue() == header.as_string() == str(header)

    def test_empty(self, header_lines):
        header = MailHeader(header_lines).empty()
        assert len(header) == 0
        assert header.as_string() == ""
