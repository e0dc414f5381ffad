"""
Tests for the OTPAuth codec.

Tests cover:
- Label and issuer resolution
- Secret normalization
- Optional parameters carried through verbatim
- Rejection of malformed URIs
- Serialization and round trip
"""
import pytest

from toofer.exceptions import FormatError
from toofer.models import Account
from toofer.otpauth import ParsedOTPAuth, is_valid, parse, serialize, to_account


class TestParse:
    """Tests for parse()."""

    def test_label_with_issuer_prefix(self):
        parsed = parse("otpauth://totp/GitHub:alice%40example.com?secret=JBSWY3DPEHPK3PXP")
        assert parsed.type == "totp"
        assert parsed.issuer == "GitHub"
        assert parsed.label == "alice@example.com"
        assert parsed.secret == "JBSWY3DPEHPK3PXP"

    def test_encoded_colon_in_label(self):
        parsed = parse("otpauth://totp/ACME%20Co%3Ajohn?secret=JBSWY3DPEHPK3PXP")
        assert parsed.issuer == "ACME Co"
        assert parsed.label == "john"

    def test_only_first_colon_splits(self):
        parsed = parse("otpauth://totp/ACME:john:doe?secret=JBSWY3DPEHPK3PXP")
        assert parsed.issuer == "ACME"
        assert parsed.label == "john:doe"

    def test_label_without_issuer(self):
        parsed = parse("otpauth://totp/alice?secret=JBSWY3DPEHPK3PXP")
        assert parsed.label == "alice"
        assert parsed.issuer == "Unknown"

    def test_query_issuer_overrides_label(self):
        parsed = parse("otpauth://totp/Old:alice?secret=JBSWY3DPEHPK3PXP&issuer=New")
        assert parsed.issuer == "New"
        assert parsed.label == "alice"

    def test_empty_query_issuer_keeps_label_issuer(self):
        parsed = parse("otpauth://totp/Label:alice?secret=JBSWY3DPEHPK3PXP&issuer=")
        assert parsed.issuer == "Label"

    def test_query_issuer_without_prefix(self):
        parsed = parse("otpauth://totp/alice?secret=JBSWY3DPEHPK3PXP&issuer=Example")
        assert parsed.issuer == "Example"

    def test_secret_normalized(self):
        parsed = parse("otpauth://totp/a?secret=jbsw%20y3dp%20ehpk%203pxp")
        assert parsed.secret == "JBSWY3DPEHPK3PXP"

    def test_optional_parameters_unset(self):
        parsed = parse("otpauth://totp/a?secret=JBSWY3DPEHPK3PXP")
        assert parsed.algorithm is None
        assert parsed.digits is None
        assert parsed.period is None
        assert parsed.counter is None

    def test_optional_parameters_carried(self):
        parsed = parse(
            "otpauth://totp/a?secret=JBSWY3DPEHPK3PXP"
            "&algorithm=SHA256&digits=8&period=60"
        )
        assert parsed.algorithm == "SHA256"
        assert parsed.digits == 8
        assert parsed.period == 60

    def test_hotp_counter(self):
        parsed = parse("otpauth://hotp/a?secret=JBSWY3DPEHPK3PXP&counter=5")
        assert parsed.type == "hotp"
        assert parsed.counter == 5

    def test_non_numeric_digits(self):
        with pytest.raises(FormatError):
            parse("otpauth://totp/a?secret=JBSWY3DPEHPK3PXP&digits=six")


class TestParseErrors:
    """Malformed URIs raise FormatError."""

    @pytest.mark.parametrize("uri", [
        "https://totp/a?secret=JBSWY3DPEHPK3PXP",
        "otpauth:/totp/a?secret=JBSWY3DPEHPK3PXP",
        "otpauth://motp/a?secret=JBSWY3DPEHPK3PXP",
        "otpauth://totp/a",
        "otpauth://totp/a?issuer=Example",
        "otpauth://totp/a?secret=",
        "otpauth://TOTP/a?secret=JBSWY3DPEHPK3PXP",
        "otpauth://HoTp/a?secret=JBSWY3DPEHPK3PXP",
        "otpauth://totp/%E0%A4%A?secret=JBSWY3DPEHPK3PXP",
        "otpauth://totp/bad%zzlabel?secret=JBSWY3DPEHPK3PXP",
        "otpauth://totp/%FFalice?secret=JBSWY3DPEHPK3PXP",
        "otpauth://totp/a?secret=!!!!",
        "otpauth://totp/a?secret=0189",
        "",
    ])
    def test_rejected(self, uri):
        with pytest.raises(FormatError):
            parse(uri)

    def test_type_is_case_sensitive(self):
        assert is_valid("otpauth://TOTP/a?secret=JBSWY3DPEHPK3PXP") is False
        assert is_valid("otpauth://Hotp/a?secret=JBSWY3DPEHPK3PXP") is False

    def test_malformed_label_escape(self):
        uri = "otpauth://totp/%E0%A4%A?secret=JBSWY3DPEHPK3PXP"
        with pytest.raises(FormatError):
            parse(uri)
        assert is_valid(uri) is False

    def test_secret_without_key_material(self):
        with pytest.raises(FormatError):
            parse("otpauth://totp/a?secret=!!!!")
        assert is_valid("otpauth://totp/a?secret=%20%20") is False

    def test_format_error_is_value_error(self):
        with pytest.raises(ValueError):
            parse("not a uri")


class TestIsValid:
    """Tests for is_valid()."""

    def test_valid(self):
        assert is_valid("otpauth://totp/a?secret=JBSWY3DPEHPK3PXP") is True

    def test_invalid(self):
        assert is_valid("otpauth://sms/a?secret=JBSWY3DPEHPK3PXP") is False
        assert is_valid("garbage") is False


class TestToAccount:
    """Tests for to_account()."""

    def test_copies_fields(self):
        parsed = ParsedOTPAuth(type="totp", label="alice", issuer="GitHub", secret="JBSWY3DP")
        account = to_account(parsed)
        assert account.name == "alice"
        assert account.issuer == "GitHub"
        assert account.secret == "JBSWY3DP"

    def test_fresh_ids(self):
        parsed = parse("otpauth://totp/a?secret=JBSWY3DPEHPK3PXP")
        assert to_account(parsed).id != to_account(parsed).id


class TestSerialize:
    """Tests for serialize()."""

    def test_format(self):
        account = Account.new(name="alice@example.com", issuer="GitHub", secret="JBSWY3DPEHPK3PXP")
        assert serialize(account) == (
            "otpauth://totp/GitHub%3Aalice%40example.com"
            "?secret=JBSWY3DPEHPK3PXP&issuer=GitHub"
        )

    def test_round_trip(self):
        account = Account.new(name="john: doe", issuer="Big Corp", secret="gezd gnbv gy3t qojq")
        parsed = parse(serialize(account))
        assert parsed.type == "totp"
        assert parsed.label == account.name
        assert parsed.issuer == account.issuer
        assert parsed.secret == account.secret

    def test_hotp_normalizes_to_totp(self):
        parsed = parse("otpauth://hotp/Ex:a?secret=JBSWY3DPEHPK3PXP&counter=3&digits=8")
        uri = serialize(to_account(parsed))
        assert uri.startswith("otpauth://totp/")
        assert "counter" not in uri
        assert "digits" not in uri
