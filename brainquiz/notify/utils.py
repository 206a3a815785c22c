import re

_NON_DIGITS = re.compile(r"\D")
# 11 digits with a leading 0, or 13 digits with the 234 country code.
_NIGERIAN_MOBILE = re.compile(r"^(0[789][01]\d{8}|234[789][01]\d{8})$")


def format_phone_number(phone_number: str, country_code: str = "234") -> str:
    """Normalise ``phone_number`` to international ``+<digits>`` form.

    Parameters
    ----------
    phone_number : str
        Raw input; any non-digit characters are stripped.
    country_code : str
        Prefix substituted for the leading ``0`` of an 11-digit local number.

    Returns
    -------
    str
        The cleaned number prefixed with ``+``.
    """
    cleaned = _NON_DIGITS.sub("", phone_number)
    if not cleaned.startswith(country_code) and len(cleaned) == 11:
        cleaned = country_code + cleaned[1:]
    return "+" + cleaned


def is_valid_phone_number(phone_number: str) -> bool:
    return bool(_NIGERIAN_MOBILE.match(_NON_DIGITS.sub("", phone_number)))


def mask_phone_number(phone_number: str) -> str:
    """Hide all but the last four digits, for log lines."""
    if len(phone_number) <= 4:
        return "*" * len(phone_number)
    return "*" * (len(phone_number) - 4) + phone_number[-4:]
