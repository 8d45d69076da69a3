"""
Tests for enricher/barcodes.py - EAN-13 generation and uniqueness
"""

import pytest
from enricher.barcodes import (
    ean13_check_digit,
    generate_barcode,
    is_valid_ean13,
    collect_existing_barcodes,
    assign_barcodes,
    validate_prefix
)


class TestEan13CheckDigit:
    """Test check digit calculation"""

    def test_known_code(self):
        """Test check digit of a published EAN-13"""
        assert ean13_check_digit("400638133393") == 1

    def test_check_digit_zero(self):
        """Test sum already a multiple of ten gives 0, not 10"""
        # 1*1 + 3*3 = 10
        assert ean13_check_digit("100000000003") == 0
        assert ean13_check_digit("000000000000") == 0

    def test_odd_positions_weigh_three(self):
        """Test digit at an odd position is tripled"""
        # 2*1 + 2*3 = 8 -> 2
        assert ean13_check_digit("200000000002") == 2

    def test_rejects_short_input(self):
        """Test that an 11-digit base is rejected"""
        with pytest.raises(ValueError):
            ean13_check_digit("20000000000")

    def test_rejects_non_digits(self):
        """Test that letters are rejected"""
        with pytest.raises(ValueError):
            ean13_check_digit("20000000000A")


class TestGenerateBarcode:
    """Test barcode construction"""

    def test_layout(self):
        """Test prefix, product digits, index and check digit"""
        assert generate_barcode(123456789, 5) == "2004567890058"

    def test_short_product_id_is_padded(self):
        """Test product IDs under six digits are zero padded"""
        assert generate_barcode(42, 0) == "2000000420004"

    def test_string_product_id(self):
        """Test product ID given as a string"""
        assert generate_barcode("123456789", 5) == generate_barcode(123456789, 5)

    def test_index_wraps_to_three_digits(self):
        """Test large indexes keep the code 13 digits long"""
        code = generate_barcode(7001234567, 1005)
        assert len(code) == 13
        assert code == generate_barcode(7001234567, 5)

    def test_custom_prefix(self):
        """Test a different in-store prefix"""
        code = generate_barcode(42, 0, prefix="299")
        assert code.startswith("299")
        assert is_valid_ean13(code)

    def test_generated_codes_are_valid(self):
        """Test every generated code passes validation"""
        for index in range(0, 50):
            assert is_valid_ean13(generate_barcode(7001234567, index))


class TestIsValidEan13:
    """Test EAN-13 validation"""

    def test_valid(self):
        assert is_valid_ean13("4006381333931") is True

    def test_wrong_check_digit(self):
        assert is_valid_ean13("4006381333932") is False

    def test_wrong_length(self):
        assert is_valid_ean13("400638133393") is False

    def test_empty(self):
        assert is_valid_ean13(None) is False
        assert is_valid_ean13("") is False


class TestValidatePrefix:
    """Test barcode prefix checks"""

    def test_valid(self):
        assert validate_prefix("200") == "200"
        assert validate_prefix(299) == "299"

    def test_invalid(self):
        for bad in ("20", "2000", "2a0", "", None):
            with pytest.raises(ValueError):
                validate_prefix(bad)


class TestCollectExistingBarcodes:
    """Test catalog barcode collection"""

    def test_collects_non_empty(self, sample_products):
        """Test only non-empty barcodes are collected"""
        assert collect_existing_barcodes(sample_products) == {"0012345678905"}

    def test_products_without_variants(self):
        """Test products with missing or null variants"""
        assert collect_existing_barcodes([{"id": 1}, {"id": 2, "variants": None}]) == set()


class TestAssignBarcodes:
    """Test barcode assignment for variants"""

    def test_only_missing_barcodes(self, sample_products):
        """Test variants with a barcode are left alone"""
        product = sample_products[1]
        updates = assign_barcodes(product, 0, is_taken=lambda code: False)

        assert len(updates) == 1
        assert updates[0]["id"] == 41000000003
        # Second variant, so index 1
        assert updates[0]["barcode"] == generate_barcode(product["id"], 1)

    def test_base_index_offsets_codes(self, sample_products):
        """Test the product's base index is added to the variant position"""
        product = sample_products[0]
        updates = assign_barcodes(product, 300, is_taken=lambda code: False)
        assert updates[0]["barcode"] == generate_barcode(product["id"], 300)

    def test_skips_taken_codes(self, sample_products):
        """Test collisions bump the index"""
        product = sample_products[0]
        taken = {generate_barcode(product["id"], 0), generate_barcode(product["id"], 1)}

        updates = assign_barcodes(product, 0, is_taken=taken.__contains__)

        assert updates[0]["barcode"] == generate_barcode(product["id"], 2)

    def test_no_duplicates_within_product(self):
        """Test a bumped variant does not reuse the next variant's code"""
        product = {
            "id": 555,
            "title": "Combo",
            "variants": [{"id": 1, "barcode": None}, {"id": 2, "barcode": None}]
        }
        taken = {generate_barcode(555, 0)}

        updates = assign_barcodes(product, 0, is_taken=taken.__contains__)
        codes = [u["barcode"] for u in updates]

        assert len(codes) == 2
        assert len(set(codes)) == 2
        assert generate_barcode(555, 0) not in codes

    def test_gives_up_after_max_attempts(self, sample_products, capture_logs):
        """Test variant is skipped when every candidate is taken"""
        updates = assign_barcodes(sample_products[0], 0, is_taken=lambda code: True, max_attempts=5)

        assert updates == []
        assert "Could not generate a unique barcode" in capture_logs.text

    def test_product_without_variants(self):
        """Test product with no variants"""
        assert assign_barcodes({"id": 1, "title": "Empty"}, 0, is_taken=lambda code: False) == []
