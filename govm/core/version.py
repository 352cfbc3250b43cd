"""
Go version string handling.

Versions are written the way Go release tags are, without the ``go`` prefix:
``1.22.0``, ``1.21``, ``1.23rc1``, ``1.22beta2``. Users may type ``go1.22.0``
or ``v1.22.0``; both normalize to ``1.22.0``.
"""

import re
from typing import Iterable, List, Tuple

from govm.core.exceptions import ConfigurationError

_VERSION_RE = re.compile(r"^(\d+)\.(\d+)(?:\.(\d+))?(?:(rc|beta)(\d+))?$")

# Pre-releases sort before the final release with the same numbers.
_STAGE_ORDER = {"beta": 0, "rc": 1, "": 2}


def normalize(version: str) -> str:
    """
    Strip surrounding whitespace and a leading ``v`` or ``go``.

    Example:
        >>> normalize("go1.22.0")
        '1.22.0'
    """
    version = version.strip()
    if version.startswith("go"):
        version = version[2:]
    elif version.startswith("v"):
        version = version[1:]
    return version


def is_valid(version: str) -> bool:
    """Check whether a normalized version string is well-formed."""
    return bool(_VERSION_RE.match(version))


def validate(version: str) -> str:
    """
    Normalize and validate a version string.

    Returns:
        Normalized version

    Raises:
        ConfigurationError: If the version is malformed
    """
    normalized = normalize(version)
    if not is_valid(normalized):
        raise ConfigurationError(f"Malformed Go version: {version!r}")
    return normalized


def parse(version: str) -> Tuple[int, int, int, int, int]:
    """
    Parse a version into a comparable key.

    Malformed versions sort below every well-formed one.

    Example:
        >>> parse("1.22.0") > parse("1.22rc1")
        True
    """
    match = _VERSION_RE.match(version)
    if not match:
        return (-1, -1, -1, -1, -1)

    major, minor, patch, stage, stage_num = match.groups()
    return (
        int(major),
        int(minor),
        int(patch or 0),
        _STAGE_ORDER[stage or ""],
        int(stage_num or 0),
    )


def sort_versions(versions: Iterable[str], newest_first: bool = True) -> List[str]:
    """Sort version strings by release order."""
    return sorted(versions, key=parse, reverse=newest_first)
