"""Structured metadata parsed from scanned-mail PDF filenames."""

from __future__ import annotations

import re
from dataclasses import dataclass

# <Type>_<first>.<last>_<YYYYMMDD>-<HHMMSS[CC]>[-NN].pdf
#   MailCert_Andriana.Morris_20260210-10393801.pdf
#   MailCert_Jennifer.Ruiz_20260209-155008-01.pdf
# <Type> is greedy and may contain underscores; the -NN sequence suffix is dropped.
FILENAME_PATTERN = re.compile(
    r"^(?P<type>.+)_(?P<user>[a-z]+\.[a-z-]+)_(?P<date>\d{8})-(?P<time>\d{6,8})(?:-\d+)?\.pdf$",
    re.IGNORECASE | re.ASCII,
)


@dataclass(frozen=True)
class ParsedFilename:
    """Fields extracted from a filename; all ``None`` when it does not match."""

    mail_type: str | None = None
    user: str | None = None
    created_date: str | None = None
    created_time: str | None = None

    @property
    def is_parsed(self) -> bool:
        return self.mail_type is not None


def parse_pdf_filename(filename: str) -> ParsedFilename:
    """Parse mail type, user, creation date and time out of ``filename``.

    Unparseable names are not an error: they yield an all-``None`` result so
    the file can still be listed (as "Unknown") and reconciled.
    """
    match = FILENAME_PATTERN.match(filename)
    if match is None:
        return ParsedFilename()

    date_str = match.group("date")
    time_str = match.group("time")
    return ParsedFilename(
        mail_type=match.group("type"),
        user=match.group("user"),
        created_date=f"{date_str[0:4]}-{date_str[4:6]}-{date_str[6:8]}",
        # Only the first six digits are the time of day.
        created_time=f"{time_str[0:2]}:{time_str[2:4]}:{time_str[4:6]}",
    )
