"""String pattern predicates used by the string rules.

Patterns must match the whole string; a trailing newline is a mismatch.
Predicates whose name says "may only contain" accept the empty string, so
that emptiness stays the business of the required-class rules.
"""

from __future__ import annotations

import ipaddress
import re
import unicodedata
from urllib.parse import urlsplit

_UCS = r"\u00A0-\uD7FF\uF900-\uFDCF\uFDF0-\uFFEF"
_LOCAL_CHAR = rf"[a-zA-Z0-9!#$%&'*+/=?^_`{{|}}~{_UCS}-]"
_DOMAIN_CHAR = rf"[a-zA-Z0-9{_UCS}]"
_TLD_CHAR = rf"[a-zA-Z{_UCS}]"

EMAIL = (
    rf"^{_LOCAL_CHAR}+(?:\.{_LOCAL_CHAR}+)*"
    rf"@(?:{_DOMAIN_CHAR}(?:[a-zA-Z0-9._~{_UCS}-]*{_DOMAIN_CHAR})?\.)+"
    rf"{_TLD_CHAR}(?:[a-zA-Z0-9_~{_UCS}-]*{_TLD_CHAR})?\.?$"
)
ALPHA = r"^[a-zA-Z]+$"
ALPHA_NUM = r"^[a-zA-Z0-9]+$"
ALPHA_DASH = r"^[a-zA-Z_-]+$"
NUMERIC = r"^[0-9]+$"
INT = r"^(?:[-+]?(?:0|[1-9][0-9]*))$"
FLOAT = r"^(?:[-+]?(?:[0-9]+))?(?:\.[0-9]*)?(?:[eE][\+\-]?(?:[0-9]+))?$"
UUID3 = r"^[0-9a-f]{8}-[0-9a-f]{4}-3[0-9a-f]{3}-[0-9a-f]{4}-[0-9a-f]{12}$"
UUID4 = r"^[0-9a-f]{8}-[0-9a-f]{4}-4[0-9a-f]{3}-[89ab][0-9a-f]{3}-[0-9a-f]{12}$"
UUID5 = r"^[0-9a-f]{8}-[0-9a-f]{4}-5[0-9a-f]{3}-[89ab][0-9a-f]{3}-[0-9a-f]{12}$"
UUID = r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$"

rx_email = re.compile(EMAIL)
rx_alpha = re.compile(ALPHA)
rx_alpha_num = re.compile(ALPHA_NUM)
rx_alpha_dash = re.compile(ALPHA_DASH)
rx_numeric = re.compile(NUMERIC)
rx_int = re.compile(INT)
rx_float = re.compile(FLOAT)
rx_uuid3 = re.compile(UUID3)
rx_uuid4 = re.compile(UUID4)
rx_uuid5 = re.compile(UUID5)
rx_uuid = re.compile(UUID)


def is_null(text: str) -> bool:
    return len(text) == 0


def _optional_match(regex: re.Pattern[str], text: str) -> bool:
    return is_null(text) or regex.fullmatch(text) is not None


def is_email(text: str) -> bool:
    return rx_email.fullmatch(text) is not None


def is_alpha(text: str) -> bool:
    return _optional_match(rx_alpha, text)


def is_alpha_num(text: str) -> bool:
    return _optional_match(rx_alpha_num, text)


def is_alpha_dash(text: str) -> bool:
    return _optional_match(rx_alpha_dash, text)


def is_alpha_unicode(text: str) -> bool:
    return all(unicodedata.category(c).startswith("L") for c in text)


def is_alpha_num_unicode(text: str) -> bool:
    return all(unicodedata.category(c)[0] in "LMN" for c in text)


def is_alpha_dash_unicode(text: str) -> bool:
    return all(c in "_-" or unicodedata.category(c)[0] in "LMN" for c in text)


def is_numeric(text: str) -> bool:
    return _optional_match(rx_numeric, text)


def is_int(text: str) -> bool:
    return _optional_match(rx_int, text)


def is_float(text: str) -> bool:
    return _optional_match(rx_float, text)


def is_uuid3(text: str) -> bool:
    return _optional_match(rx_uuid3, text)


def is_uuid4(text: str) -> bool:
    return _optional_match(rx_uuid4, text)


def is_uuid5(text: str) -> bool:
    return _optional_match(rx_uuid5, text)


def is_uuid(text: str) -> bool:
    return _optional_match(rx_uuid, text)


def is_ip(text: str) -> bool:
    try:
        ipaddress.ip_address(text)
    except ValueError:
        return False
    return True


def is_ipv4(text: str) -> bool:
    try:
        return isinstance(ipaddress.ip_address(text), ipaddress.IPv4Address)
    except ValueError:
        return False


def is_ipv6(text: str) -> bool:
    try:
        return isinstance(ipaddress.ip_address(text), ipaddress.IPv6Address)
    except ValueError:
        return False


def is_url(text: str) -> bool:
    """Check if the string is an absolute, hierarchical URL. Empty string is valid.

    Opaque forms such as ``mailto:x`` are rejected; the part after the scheme
    must start with ``/``.
    """
    if is_null(text):
        return True
    text = text.split("#", 1)[0]
    try:
        parts = urlsplit(text)
    except ValueError:
        return False
    return bool(parts.scheme) and (bool(parts.netloc) or parts.path.startswith("/"))
