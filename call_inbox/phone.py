from typing import List, Optional

DEFAULT_COUNTRY_CODE = "386"
NATIONAL_NUMBER_LENGTH = 8


def digits_only(value: Optional[str]) -> str:
    if not value:
        return ""
    return "".join(char for char in value if char.isdigit())


def normalize_phone(
    value: Optional[str],
    country_code: str = DEFAULT_COUNTRY_CODE,
    national_length: int = NATIONAL_NUMBER_LENGTH,
) -> str:
    """Canonical digit-only key for a phone number.

    Leading trunk (``0``) or international (``00``) prefixes are dropped. When
    the remainder is a national number it gets the default country code, so
    ``"+386 51 395 476"``, ``"051 395 476"`` and ``"0051395476"`` share one key.
    """
    digits = digits_only(value)
    if not digits.startswith("0"):
        return digits
    trimmed = digits.lstrip("0")
    if not trimmed:
        return ""
    if len(trimmed) <= national_length:
        return f"{country_code}{trimmed}"
    return trimmed


def search_patterns(
    value: Optional[str],
    country_code: str = DEFAULT_COUNTRY_CODE,
    national_length: int = NATIONAL_NUMBER_LENGTH,
) -> List[str]:
    digits = digits_only(value)
    if not digits:
        return []
    patterns = {digits}
    normalized = normalize_phone(digits, country_code, national_length)
    if normalized:
        patterns.add(normalized)
    trimmed = digits.lstrip("0")
    if trimmed:
        patterns.add(trimmed)
    return sorted(patterns, key=len, reverse=True)


def format_phone(value: str, country_code: str = DEFAULT_COUNTRY_CODE) -> str:
    normalized = digits_only(value)
    if not normalized:
        return value
    if normalized.startswith(country_code):
        local = normalized[len(country_code):]
        with_zero = local if local.startswith("0") else f"0{local}"
        if len(with_zero) >= 9:
            return f"{with_zero[:3]} {with_zero[3:6]} {with_zero[6:]}"
        return with_zero
    return f"+{normalized}"
