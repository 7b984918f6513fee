"""Dotted-numeric version comparison.

Versions are compared segment by segment as integers, never lexically, so
``1.10.0`` is newer than ``1.9.0``. The shorter version is padded with zeros
(``1.2`` equals ``1.2.0``).
"""
import re
from typing import Optional, Tuple

LATEST = "latest"

# "latest" cannot be resolved offline; installs pin these instead.
FALLBACK_VERSIONS = {
    "python": "3.12",
    "node": "22",
    "django": "5.1",
    "nextjs": "15",
    "postgres": "16",
}

_VERSION_RE = re.compile(r'^\d+(?:\.\d+)*$')
_VERSION_TOKEN_RE = re.compile(r'v?(\d+(?:\.\d+)+|\d+)')


def is_valid_version(text: str) -> bool:
    return bool(_VERSION_RE.match(text.strip()))


def parse_version(text: Optional[str]) -> Optional[Tuple[int, ...]]:
    """Parse ``'1.10.3'`` (or ``'v1.10.3'``) into ``(1, 10, 3)``; None if unparseable."""
    if not text:
        return None
    cleaned = text.strip()
    if cleaned[:1] in ("v", "V"):
        cleaned = cleaned[1:]
    if not _VERSION_RE.match(cleaned):
        return None
    return tuple(int(part) for part in cleaned.split("."))


def extract_version(output: str) -> Optional[str]:
    """Pull the first dotted version token out of a ``--version`` banner.

    Prefers tokens with at least one dot (``Docker version 27.0.3, build 7d4bcd8``)
    and falls back to a bare number.
    """
    dotted = re.search(r'(\d+(?:\.\d+)+)', output or "")
    if dotted:
        return dotted.group(1)
    bare = _VERSION_TOKEN_RE.search(output or "")
    return bare.group(1) if bare else None


def satisfies(installed: Optional[str], minimum: str) -> bool:
    """Return True when ``installed`` is at least ``minimum``.

    A minimum of "latest" accepts any installed version. An installed
    version that cannot be parsed never satisfies a concrete minimum.
    """
    if minimum == LATEST:
        return True

    have = parse_version(installed)
    want = parse_version(minimum)
    if have is None or want is None:
        return False

    width = max(len(have), len(want))
    have = have + (0,) * (width - len(have))
    want = want + (0,) * (width - len(want))
    return have >= want


def resolve_install_version(family: str, requested: str) -> str:
    """Concrete version to install for ``family`` when ``requested`` may be "latest"."""
    if requested == LATEST:
        return FALLBACK_VERSIONS[family]
    return requested


def major(version: str) -> str:
    """``'22.4.1'`` -> ``'22'``."""
    return version.split(".", 1)[0]
