"""Package name normalization and validation.

Names are checked before any cache or network access so malformed input
never reaches the npm API.
"""

import re
from dataclasses import dataclass

from npmtraffic.exceptions import InvalidRequestError

MAX_PACKAGE_NAME_LENGTH = 214

# Optional @scope/ prefix followed by the package part
_FULL_PACKAGE_PATTERN = re.compile(
    r"^(@[a-z0-9-~][a-z0-9-._~]*/)?[a-z0-9-~][a-z0-9-._~]*$"
)
_ALLOWED_CHARS_PATTERN = re.compile(r"^[a-z0-9@._~/-]+$", re.IGNORECASE)


@dataclass(frozen=True)
class PackageNameValidation:
    """Result of validate_package_name()."""

    ok: bool
    error: str | None = None


def normalize_package_input(value: str) -> str:
    """Trim surrounding whitespace. Case is left untouched."""
    return value.strip()


def validate_package_name(name: str) -> PackageNameValidation:
    """Validate a package name against npm naming rules.

    Args:
        name: Normalized package name

    Returns:
        PackageNameValidation with ok=False and an error message when invalid
    """
    if not name:
        return PackageNameValidation(False, "empty package name")

    if len(name) > MAX_PACKAGE_NAME_LENGTH:
        return PackageNameValidation(False, "package name too long")

    if not _FULL_PACKAGE_PATTERN.match(name):
        return PackageNameValidation(False, "invalid package name")

    return PackageNameValidation(True)


def assert_valid_package_name(name: str) -> None:
    """Raise InvalidRequestError unless name is a valid package name."""
    result = validate_package_name(name)
    if not result.ok:
        raise InvalidRequestError(result.error or "invalid package name")


def is_allowed_package_input(value: str) -> bool:
    """Loose character check for partially typed input."""
    if not value:
        return True
    if len(value) > MAX_PACKAGE_NAME_LENGTH:
        return False
    return bool(_ALLOWED_CHARS_PATTERN.match(value))


def canonicalize_packages(names: list[str]) -> list[str]:
    """Trim, drop empties, de-duplicate and sort, all case-insensitively.

    The first spelling of a duplicate wins.
    """
    seen: set[str] = set()
    cleaned = []
    for raw in names:
        name = normalize_package_input(raw)
        if not name:
            continue
        lower = name.lower()
        if lower in seen:
            continue
        seen.add(lower)
        cleaned.append(name)
    return sorted(cleaned, key=str.lower)


def parse_package_list(raw: str | None) -> list[str]:
    """Split a comma-separated query value into normalized names."""
    if not raw:
        return []
    return [name for name in (normalize_package_input(p) for p in raw.split(",")) if name]
