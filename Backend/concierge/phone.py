"""
Phone number helpers for matching WhatsApp senders against stored clients.

WhatsApp delivers the sender as bare digits with the country code
("919876543210") while front-desk staff type numbers however they like
("+91 98765-43210", "9876543210"). Rather than rewriting stored data we
look up every plausible stored form of the incoming number.
"""

import re

DEFAULT_COUNTRY_CODE = "91"
NATIONAL_NUMBER_LENGTH = 10


def digits_only(phone: str | None) -> str:
    """Remove everything except digits."""
    if not phone:
        return ""
    return re.sub(r"\D", "", phone)


def normalize_phone_variants(raw: str | None, country_code: str = DEFAULT_COUNTRY_CODE) -> set[str]:
    """
    Return the set of stored phone forms that could belong to ``raw``.

    Examples (country code "91"):
        "9876543210"      -> {"9876543210", "+9876543210", "919876543210", "+919876543210"}
        "+91 98765 43210" -> {"919876543210", "+919876543210", "9876543210"}

    An input without digits yields {""}; callers must treat that as
    "no match possible" and skip the lookup.
    """
    digits = digits_only(raw)
    if not digits:
        return {""}

    variants = {digits, f"+{digits}"}
    if digits.startswith(country_code):
        if len(digits) > NATIONAL_NUMBER_LENGTH:
            variants.add(digits[len(country_code):])
    elif len(digits) == NATIONAL_NUMBER_LENGTH:
        variants.add(f"{country_code}{digits}")
        variants.add(f"+{country_code}{digits}")
    return variants


def is_lookup_possible(variants: set[str]) -> bool:
    return variants != {""}


def format_phone_for_whatsapp(phone: str | None) -> str:
    """Cloud API wants international digits with no '+' or separators."""
    return digits_only(phone)


def mask_phone(phone: str | None) -> str:
    """Keep logs free of full customer numbers."""
    digits = digits_only(phone)
    if len(digits) <= 4:
        return "***"
    return f"{digits[:4]}***{digits[-2:]}"
