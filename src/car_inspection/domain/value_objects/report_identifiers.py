"""Generators for report numbers and shareable links."""

import re
import secrets
from datetime import datetime
from typing import Optional

REPORT_NUMBER_PATTERN = re.compile(r"^INS-\d{4}-\d{5}$")
SHAREABLE_LINK_PATTERN = re.compile(r"^[0-9a-f]{64}$")


class ReportNumberGenerator:
    """Produces human-readable report numbers of the form INS-<year>-<5 digits>.

    Numbers are random, so callers must check them against the store and retry
    on collision.
    """

    PREFIX = "INS"

    @staticmethod
    def generate(now: Optional[datetime] = None) -> str:
        year = (now or datetime.utcnow()).year
        suffix = secrets.randbelow(100000)
        return f"{ReportNumberGenerator.PREFIX}-{year}-{suffix:05d}"

    @staticmethod
    def is_valid(report_number: str) -> bool:
        return bool(REPORT_NUMBER_PATTERN.match(report_number or ""))


class ShareableLinkGenerator:
    """Produces unguessable public link tokens (32 random bytes, hex encoded)."""

    TOKEN_BYTES = 32

    @staticmethod
    def generate() -> str:
        return secrets.token_hex(ShareableLinkGenerator.TOKEN_BYTES)

    @staticmethod
    def looks_valid(link: str) -> bool:
        return bool(SHAREABLE_LINK_PATTERN.match(link or ""))
