"""Ordered version values for registry-backed prerequisite checks.

Registry values that record an installed version come in two shapes: integer
build numbers stored as REG_DWORD/REG_QWORD (e.g. the .NET ``Release`` value)
and dotted strings stored as REG_SZ (e.g. ``14.38.33135``). RegistryVersion
normalizes both into a single total order:

- an integer ``n`` is the one-component release ``(n,)``
- a string contributes its first dotted numeric run, so ``v1.2.3`` and
  ``1.2.3 (x64)`` both read as ``1.2.3``
- components compare numerically, left to right; ``10.0`` > ``9.9``
- trailing zero components are insignificant; ``1.2`` == ``1.2.0``

Anything without a numeric run is rejected with ValueError.
"""

import re
from functools import total_ordering

from packaging.version import InvalidVersion, Version

_VERSION_PATTERN = re.compile(r"v?(\d+(?:\.\d+)*)")


def extract_version_number(version_str: str) -> str:
    """Extract the first dotted numeric run from a version string."""
    if not version_str:
        return ""
    match = _VERSION_PATTERN.search(version_str)
    if match:
        return match.group(1)
    return ""


@total_ordering
class RegistryVersion:
    """A version number read from (or compared against) the registry."""

    __slots__ = ("raw", "_version")

    def __init__(self, raw: int | str):
        self.raw = raw
        self._version = self._parse(raw)

    @staticmethod
    def _parse(raw: int | str) -> Version:
        if isinstance(raw, bool):
            raise ValueError(f"Not a version value: {raw!r}")
        if isinstance(raw, int):
            if raw < 0:
                raise ValueError(f"Version number must not be negative: {raw}")
            return Version(str(raw))
        if isinstance(raw, str):
            number = extract_version_number(raw.strip())
            if not number:
                raise ValueError(f"No version number found in {raw!r}")
            try:
                return Version(number)
            except InvalidVersion as e:
                raise ValueError(f"Invalid version {raw!r}: {e}") from e
        raise ValueError(f"Unsupported version value type: {type(raw).__name__}")

    @property
    def release(self) -> tuple[int, ...]:
        return self._version.release

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, RegistryVersion):
            return NotImplemented
        return self._version == other._version

    def __lt__(self, other: "RegistryVersion") -> bool:
        if not isinstance(other, RegistryVersion):
            return NotImplemented
        return self._version < other._version

    def __hash__(self) -> int:
        return hash(self._version)

    def __repr__(self) -> str:
        return f"RegistryVersion({self.raw!r})"

    def __str__(self) -> str:
        return str(self._version)


def compare_versions(version1: int | str, version2: int | str) -> int:
    """Compare two registry version values. Returns -1, 0, or 1.

    Raises:
        ValueError: If either value cannot be read as a version
    """
    v1 = RegistryVersion(version1)
    v2 = RegistryVersion(version2)
    if v1 < v2:
        return -1
    elif v1 > v2:
        return 1
    return 0


__all__ = [
    "RegistryVersion",
    "compare_versions",
    "extract_version_number",
]
