"""
OTPAuth Codec — ``otpauth://`` URIs to and from Account records.

URI layout::

    otpauth://{totp|hotp}/{label}?secret=BASE32&issuer=STR
        [&algorithm=STR][&digits=INT][&period=INT][&counter=INT]

``serialize`` is lossy: it always emits ``totp`` and never emits algorithm,
digits or period.

Security Note:
    URIs carry the shared secret. Never log them.
"""
import re
import logging
from typing import Literal, Optional
from urllib.parse import parse_qsl, quote, unquote, urlencode, urlsplit

from pydantic import BaseModel

from .conf import DEFAULT_ISSUER
from .exceptions import FormatError
from .models import Account, new_id
from .otp import validate_secret

logger = logging.getLogger("toofer.otpauth")

SCHEME = "otpauth://"
OTP_TYPES = ("totp", "hotp")
_BAD_ESCAPE = re.compile(r"%(?![0-9A-Fa-f]{2})")


class ParsedOTPAuth(BaseModel):
    """Fields extracted from an OTPAuth URI."""

    type: Literal["totp", "hotp"]
    label: str
    issuer: str
    secret: str
    algorithm: Optional[str] = None
    digits: Optional[int] = None
    period: Optional[int] = None
    counter: Optional[int] = None


def _int_param(params: dict[str, str], name: str, default: int) -> Optional[int]:
    if name not in params:
        return None
    raw = params[name].strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        raise FormatError(
            f"Invalid OTPAuth URI: {name} must be an integer"
        ) from None


def _decode_label(raw: str) -> str:
    """Percent-decode the label, rejecting malformed escapes."""
    if _BAD_ESCAPE.search(raw):
        raise FormatError("Invalid OTPAuth URI: malformed percent escape in label")
    try:
        return unquote(raw, errors="strict")
    except UnicodeDecodeError:
        raise FormatError(
            "Invalid OTPAuth URI: label is not valid UTF-8"
        ) from None


def parse(uri: str) -> ParsedOTPAuth:
    """Parse an OTPAuth URI.

    Args:
        uri: The ``otpauth://`` URI, as scanned or pasted.

    Returns:
        The parsed fields. ``issuer`` falls back to ``"Unknown"``.

    Raises:
        FormatError: On wrong scheme, unknown type, a malformed label, or a
            missing secret or one without base32 key material.
    """
    if not uri.startswith(SCHEME):
        raise FormatError("Invalid OTPAuth URI: must start with otpauth://")
    try:
        parts = urlsplit(uri)
    except ValueError as err:
        raise FormatError(f"Invalid OTPAuth URI: {err}") from err
    # host must match exactly, without case folding
    otp_type = parts.netloc.rsplit("@", 1)[-1].split(":", 1)[0]
    if otp_type not in OTP_TYPES:
        raise FormatError("Invalid OTPAuth URI: type must be totp or hotp")

    label = _decode_label(parts.path[1:])
    issuer = ""
    name = label
    if ":" in label:
        issuer, name = label.split(":", 1)

    # first occurrence wins for repeated parameters
    params: dict[str, str] = {}
    for key, value in parse_qsl(parts.query, keep_blank_values=True):
        params.setdefault(key, value)

    secret = params.get("secret")
    if not secret:
        raise FormatError("Invalid OTPAuth URI: missing secret parameter")

    if params.get("issuer"):
        issuer = params["issuer"]
    if not issuer:
        issuer = DEFAULT_ISSUER

    return ParsedOTPAuth(
        type=otp_type,
        label=name,
        issuer=issuer,
        secret=validate_secret(secret),
        algorithm=params.get("algorithm") or None,
        digits=_int_param(params, "digits", 6),
        period=_int_param(params, "period", 30),
        counter=_int_param(params, "counter", 0),
    )


def to_account(parsed: ParsedOTPAuth) -> Account:
    """Build a new Account from parsed URI fields."""
    return Account(
        id=new_id(),
        name=parsed.label,
        issuer=parsed.issuer,
        secret=parsed.secret,
    )


def is_valid(uri: str) -> bool:
    """Return whether ``uri`` parses as an OTPAuth URI."""
    try:
        parse(uri)
    except FormatError as err:
        logger.debug("Rejected OTPAuth URI: %s", err)
        return False
    return True


def serialize(account: Account) -> str:
    """Build a ``totp`` OTPAuth URI for sharing or QR display."""
    label = quote(f"{account.issuer}:{account.name}", safe="!~*'()")
    query = urlencode({"secret": account.secret, "issuer": account.issuer})
    return f"{SCHEME}totp/{label}?{query}"
