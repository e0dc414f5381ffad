"""
OTP Engine — HOTP (RFC 4226) and TOTP (RFC 6238) code generation.

Pure functions of secret, counter/time and parameters. The engine always
uses HMAC-SHA1; algorithm, digits and period carried by an OTPAuth URI are
not consumed here.
"""
import hmac
import time
import base64
import struct
import hashlib
import secrets
from typing import Optional

from .conf import DEFAULT_DIGITS, DEFAULT_TIME_STEP
from .exceptions import FormatError
from .models import normalize_secret

BASE32_ALPHABET = "ABCDEFGHIJKLMNOPQRSTUVWXYZ234567"
_BASE32_VALUES = {char: value for value, char in enumerate(BASE32_ALPHABET)}


def base32_decode(secret: str) -> bytes:
    """Decode a base32 secret leniently.

    Characters outside ``A-Z2-7`` (padding, spaces, dashes) are ignored and
    a trailing group of bits too short to fill a byte is discarded.

    Args:
        secret: Base32 text in any case.

    Returns:
        Decoded bytes; empty for an empty or fully invalid input.
    """
    buffer = 0
    bits = 0
    out = bytearray()
    for char in secret.upper():
        value = _BASE32_VALUES.get(char)
        if value is None:
            continue
        buffer = (buffer << 5) | value
        bits += 5
        if bits >= 8:
            bits -= 8
            out.append((buffer >> bits) & 0xFF)
            buffer &= (1 << bits) - 1
    return bytes(out)


def counter_bytes(counter: int) -> bytes:
    """Encode a counter as 8 big-endian bytes."""
    if counter < 0:
        raise ValueError(f"counter must be non-negative, got {counter}")
    return struct.pack(">Q", counter)


def hotp(key: bytes, counter: int, digits: int = DEFAULT_DIGITS) -> str:
    """Compute an HOTP code.

    Args:
        key: Raw shared key bytes.
        counter: Moving factor.
        digits: Code length.

    Returns:
        Zero-padded decimal code of ``digits`` characters.
    """
    digest = hmac.new(key, counter_bytes(counter), hashlib.sha1).digest()
    offset = digest[-1] & 0x0F
    code = struct.unpack(">I", digest[offset:offset + 4])[0] & 0x7FFFFFFF
    return str(code % (10 ** digits)).zfill(digits)


def validate_secret(secret: str) -> str:
    """Normalize a secret and check that it yields key material.

    Raises:
        FormatError: If the secret decodes to zero bytes.
    """
    normalized = normalize_secret(secret)
    if not base32_decode(normalized):
        raise FormatError("Invalid secret: no base32 key material")
    return normalized


def totp(
    secret: str,
    time_step: int = DEFAULT_TIME_STEP,
    digits: int = DEFAULT_DIGITS,
    timestamp: Optional[float] = None,
) -> str:
    """Compute the TOTP code for a base32 secret.

    Args:
        secret: Base32 shared secret.
        time_step: Step size in seconds.
        digits: Code length.
        timestamp: Unix time to evaluate at; defaults to now.

    Raises:
        FormatError: If the secret holds no key material.
    """
    key = base32_decode(secret)
    if not key:
        raise FormatError("Invalid secret: no base32 key material")
    now = time.time() if timestamp is None else timestamp
    return hotp(key, int(now // time_step), digits)


def time_remaining(
    time_step: int = DEFAULT_TIME_STEP,
    timestamp: Optional[float] = None,
) -> int:
    """Whole seconds left in the current step, in ``(0, time_step]``."""
    now = int(time.time() if timestamp is None else timestamp)
    return time_step - (now % time_step)


def progress(
    time_step: int = DEFAULT_TIME_STEP,
    timestamp: Optional[float] = None,
) -> float:
    """Fraction of the current step remaining, for countdown display."""
    now = time.time() if timestamp is None else timestamp
    return 1 - (now % time_step) / time_step


def generate_secret(length: int = 20) -> str:
    """Return a random unpadded base32 secret of ``length`` bytes."""
    return base64.b32encode(secrets.token_bytes(length)).decode("ascii").rstrip("=")
