"""Shared test fixtures for the mailtools test suite."""

from __future__ import annotations

import os

import pytest

from mailtools.config import MessageSettings


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep MAILTOOLS_* variables of the calling shell out of the tests."""
    for name in list(os.environ):
        if name.startswith("MAILTOOLS_"):
            monkeypatch.delenv(name)


# ------------------------------------------------------------------
# Sample header and message lines
# ------------------------------------------------------------------

HEADER_LINES = [
    "From sender@example.com Mon Jan  1 00:00:00 2024\n",
    "Received: from mail.example.com\n",
    "\tby mx.example.org; Mon, 1 Jan 2024 00:00:00 +0000\n",
    "subject: Hello there\n",
    "To: a@example.com,\n",
    " b@example.com\n",
    "X-Mailer: test\n",
    "X-Mailer: second\n",
    "\n",
    "Body line 1\n",
]

MESSAGE_LINES = [
    "From: Peter Orbaek <poe@daimi.aau.dk>\n",
    "To: me@example.com, other@example.com\n",
    "Cc: third@example.com\n",
    "Subject: Lunch\n",
    "Message-ID: <123@daimi.aau.dk>\n",
    "Date: Sun, 01 Jun 2025 12:00:00 +0000\n",
    "\n",
    "Shall we meet?\n",
    "\n",
    "-- \n",
    "Peter\n",
]


@pytest.fixture
def header_lines() -> list[str]:
    return list(HEADER_LINES)


@pytest.fixture
def message_lines() -> list[str]:
    return list(MESSAGE_LINES)


@pytest.fixture
def message_settings() -> MessageSettings:
    return MessageSettings(mail_addresses=["me@example.com"])
