"""
Tests for phone normalisation.

Run with: pytest Backend/tests/test_phone.py -v
"""

from concierge.phone import (
    format_phone_for_whatsapp,
    is_lookup_possible,
    mask_phone,
    normalize_phone_variants,
)


class TestNormalizePhoneVariants:

    def test_national_number_gets_country_code_forms(self):
        variants = normalize_phone_variants("9876543210")
        assert {"9876543210", "+9876543210", "919876543210", "+919876543210"} == variants

    def test_prefixed_number_gets_national_form(self):
        variants = normalize_phone_variants("919876543210")
        assert "9876543210" in variants
        assert "919876543210" in variants
        assert "+919876543210" in variants

    def test_formatting_is_stripped(self):
        variants = normalize_phone_variants("+91 98765-43210")
        assert variants == {"919876543210", "+919876543210", "9876543210"}

    def test_short_number_starting_with_prefix_is_left_alone(self):
        """Exactly 10 digits starting with 91 is a national number, not prefixed."""
        variants = normalize_phone_variants("9123456789")
        assert variants == {"9123456789", "+9123456789"}

    def test_other_lengths_get_no_extra_forms(self):
        assert normalize_phone_variants("12345") == {"12345", "+12345"}

    def test_no_digits_means_no_lookup(self):
        variants = normalize_phone_variants("call me")
        assert variants == {""}
        assert not is_lookup_possible(variants)
        assert normalize_phone_variants(None) == {""}

    def test_custom_country_code(self):
        variants = normalize_phone_variants("4155551234", country_code="1")
        assert "14155551234" in variants
        assert "+14155551234" in variants

    def test_every_national_number_round_trips(self):
        for national in ("9000000000", "8123456789", "7999999999"):
            variants = normalize_phone_variants(national)
            assert {national, f"91{national}", f"+91{national}"} <= variants
            assert national in normalize_phone_variants(f"91{national}")


def test_format_phone_for_whatsapp_keeps_digits_only():
    assert format_phone_for_whatsapp("+91 (98765) 43210") == "919876543210"


def test_mask_phone_hides_middle_digits():
    assert mask_phone("919876543210") == "9198***10"
    assert mask_phone("12") == "***"
