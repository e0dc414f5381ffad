"""
Tests for the OTP engine.

Tests cover:
- Lenient base32 decoding
- Counter encoding
- RFC 4226 HOTP reference values
- RFC 6238 TOTP reference values (SHA-1)
- Countdown helpers
"""
import base64

import pytest

from toofer.exceptions import FormatError
from toofer.otp import (
    base32_decode,
    counter_bytes,
    generate_secret,
    hotp,
    progress,
    time_remaining,
    totp,
    validate_secret,
)

# ASCII "12345678901234567890", the RFC 4226 / RFC 6238 example key
RFC_SECRET = "GEZDGNBVGY3TQOJQGEZDGNBVGY3TQOJQ"
RFC_KEY = b"12345678901234567890"

RFC4226_CODES = [
    "755224", "287082", "359152", "969429", "338314",
    "254676", "287922", "162583", "399871", "520489",
]


class TestBase32Decode:
    """Tests for base32_decode."""

    def test_hello(self):
        """JBSWY3DPEHPK3PXP decodes to 'Hello!' followed by 0xDEADBEEF."""
        decoded = base32_decode("JBSWY3DPEHPK3PXP")
        assert decoded.startswith(b"Hello!")
        assert decoded == b"Hello!\xde\xad\xbe\xef"

    def test_rfc_key(self):
        assert base32_decode(RFC_SECRET) == RFC_KEY

    def test_lowercase_accepted(self):
        assert base32_decode(RFC_SECRET.lower()) == RFC_KEY

    def test_non_alphabet_ignored(self):
        """Spaces, dashes and padding are skipped rather than rejected."""
        assert base32_decode("JBSW Y3DP-EHPK 3PXP==") == base32_decode("JBSWY3DPEHPK3PXP")
        assert base32_decode("MZXW6===") == b"foo"

    def test_trailing_partial_byte_discarded(self):
        # 10 bits -> one byte, 20 bits -> two bytes
        assert base32_decode("MY") == b"f"
        assert base32_decode("MZXQ") == b"fo"

    def test_empty_and_invalid(self):
        assert base32_decode("") == b""
        assert base32_decode("0189!@#") == b""

    def test_matches_stdlib_for_padded_input(self):
        raw = bytes(range(40))
        encoded = base64.b32encode(raw).decode("ascii")
        assert base32_decode(encoded) == raw


class TestCounterBytes:
    """Tests for counter_bytes."""

    def test_zero(self):
        assert counter_bytes(0) == b"\x00" * 8

    def test_big_endian(self):
        assert counter_bytes(1) == b"\x00\x00\x00\x00\x00\x00\x00\x01"
        assert counter_bytes(0x0102030405060708) == bytes(range(1, 9))

    def test_length_is_eight(self):
        assert len(counter_bytes(2 ** 63)) == 8

    def test_negative_rejected(self):
        with pytest.raises(ValueError):
            counter_bytes(-1)


class TestHOTP:
    """RFC 4226 Appendix D reference values."""

    @pytest.mark.parametrize("counter,expected", list(enumerate(RFC4226_CODES)))
    def test_reference_codes(self, counter, expected):
        assert hotp(RFC_KEY, counter, 6) == expected

    def test_counter_zero_from_base32(self):
        assert hotp(base32_decode(RFC_SECRET), 0) == "755224"

    def test_eight_digits(self):
        """Longer codes keep more of the truncated value."""
        code = hotp(RFC_KEY, 1, 8)
        assert len(code) == 8
        assert code == "94287082"


class TestTOTP:
    """RFC 6238 Appendix B reference values (SHA-1, 8 digits)."""

    @pytest.mark.parametrize("timestamp,expected", [
        (59, "94287082"),
        (1111111109, "07081804"),
        (1111111111, "14050471"),
        (1234567890, "89005924"),
        (2000000000, "69279037"),
        (20000000000, "65353130"),
    ])
    def test_reference_codes(self, timestamp, expected):
        assert totp(RFC_SECRET, 30, 8, timestamp=timestamp) == expected

    def test_default_six_digits(self):
        code = totp(RFC_SECRET, timestamp=59)
        assert code == "287082"

    def test_same_window_same_code(self):
        assert totp(RFC_SECRET, timestamp=60) == totp(RFC_SECRET, timestamp=89.9)

    def test_adjacent_windows_differ(self):
        assert totp(RFC_SECRET, timestamp=60) != totp(RFC_SECRET, timestamp=90)

    def test_uses_current_time(self, monkeypatch):
        monkeypatch.setattr("toofer.otp.time.time", lambda: 59.0)
        assert totp(RFC_SECRET, digits=8) == "94287082"

    def test_secret_whitespace_and_case(self):
        spaced = "gezd gnbv gy3t qojq gezd gnbv gy3t qojq"
        assert totp(spaced, timestamp=59) == totp(RFC_SECRET, timestamp=59)

    def test_empty_secret_rejected(self):
        with pytest.raises(FormatError):
            totp("!!!!", timestamp=59)


class TestCountdown:
    """Tests for time_remaining and progress."""

    def test_time_remaining_start_of_step(self):
        assert time_remaining(30, timestamp=60) == 30

    def test_time_remaining_end_of_step(self):
        assert time_remaining(30, timestamp=89) == 1

    def test_time_remaining_range(self):
        for t in range(0, 120):
            assert 0 < time_remaining(30, timestamp=t) <= 30

    def test_progress(self):
        assert progress(30, timestamp=60) == 1
        assert progress(30, timestamp=75) == pytest.approx(0.5)
        assert 0 < progress(30, timestamp=89.99) < 0.01


class TestSecrets:
    """Tests for secret helpers."""

    def test_validate_normalizes(self):
        assert validate_secret(" jbsw y3dp ") == "JBSWY3DP"

    def test_validate_rejects_empty(self):
        with pytest.raises(FormatError):
            validate_secret("   ")

    def test_generate_secret(self):
        secret = generate_secret()
        assert "=" not in secret
        assert len(base32_decode(secret)) == 20
        assert generate_secret() != secret
