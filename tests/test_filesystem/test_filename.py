"""Tests for PDF filename parsing."""

from __future__ import annotations

import string

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from mailqueue.filesystem.filename import ParsedFilename, parse_pdf_filename


class TestParsePdfFilename:
    def test_parses_sequence_suffixed_name(self) -> None:
        parsed = parse_pdf_filename("MailCert_Jennifer.Ruiz_20260209-155008-01.pdf")
        assert parsed == ParsedFilename(
            mail_type="MailCert",
            user="Jennifer.Ruiz",
            created_date="2026-02-09",
            created_time="15:50:08",
        )
        assert parsed.is_parsed

    def test_eight_digit_time_keeps_first_six(self) -> None:
        parsed = parse_pdf_filename("MailCert_Andriana.Morris_20260210-10393801.pdf")
        assert parsed.created_date == "2026-02-10"
        assert parsed.created_time == "10:39:38"

    def test_type_may_contain_underscores(self) -> None:
        parsed = parse_pdf_filename("Mail_Cert_Green_john.smith_20260101-080910.pdf")
        assert parsed.mail_type == "Mail_Cert_Green"
        assert parsed.user == "john.smith"

    def test_hyphenated_last_name(self) -> None:
        parsed = parse_pdf_filename("MailReg_mary.smith-jones_20251231-235959.pdf")
        assert parsed.user == "mary.smith-jones"
        assert parsed.created_date == "2025-12-31"

    def test_extension_is_case_insensitive(self) -> None:
        parsed = parse_pdf_filename("MailReg_john.smith_20260101-080910.PDF")
        assert parsed.is_parsed

    @pytest.mark.parametrize(
        "filename",
        [
            "random_file.pdf",
            "MailCert_JenniferRuiz_20260209-155008.pdf",
            "MailCert_Jennifer.Ruiz_2026020-155008.pdf",
            "MailCert_Jennifer.Ruiz_20260209-15500.pdf",
            "MailCert_Jennifer.Ruiz_20260209-155008.txt",
            "_Jennifer.Ruiz_20260209-155008.pdf",
            "",
        ],
    )
    def test_unmatched_names_yield_empty_result(self, filename: str) -> None:
        parsed = parse_pdf_filename(filename)
        assert parsed == ParsedFilename()
        assert not parsed.is_parsed


_NAME = st.text(alphabet=string.ascii_letters, min_size=1, max_size=12)


@settings(max_examples=200, deadline=None)
@given(
    mail_type=st.text(alphabet=string.ascii_letters + "_", min_size=1, max_size=12),
    first=_NAME,
    last=_NAME,
    year=st.integers(min_value=2000, max_value=2099),
    month=st.integers(min_value=1, max_value=12),
    day=st.integers(min_value=1, max_value=28),
    hour=st.integers(min_value=0, max_value=23),
    minute=st.integers(min_value=0, max_value=59),
    second=st.integers(min_value=0, max_value=59),
    suffix=st.sampled_from(["", "-01", "-7"]),
)
def test_well_formed_names_round_trip_their_fields(
    mail_type: str,
    first: str,
    last: str,
    year: int,
    month: int,
    day: int,
    hour: int,
    minute: int,
    second: int,
    suffix: str,
) -> None:
    filename = (
        f"{mail_type}_{first}.{last}_{year:04d}{month:02d}{day:02d}-"
        f"{hour:02d}{minute:02d}{second:02d}{suffix}.pdf"
    )
    parsed = parse_pdf_filename(filename)
    assert parsed.user == f"{first}.{last}"
    assert parsed.created_date == f"{year:04d}-{month:02d}-{day:02d}"
    assert parsed.created_time == f"{hour:02d}:{minute:02d}:{second:02d}"
