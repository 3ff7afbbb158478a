# Tests for the secure password generator

import string

import pytest

from vault.password_generator import (
    DIGIT,
    LOWER,
    SYMBOL,
    SYMBOL_CHARACTERS,
    UPPER,
    PasswordGenerationError,
    build_alphabet,
    clamp_length,
    generate_password,
    generate_password_safe,
)


class TestAlphabet:
    def test_all_classes_by_default(self):
        alphabet = build_alphabet()
        assert alphabet == (string.ascii_uppercase + string.ascii_lowercase
                            + string.digits + SYMBOL_CHARACTERS)

    def test_pool_order_is_fixed(self):
        assert build_alphabet([SYMBOL, UPPER]) == string.ascii_uppercase + SYMBOL_CHARACTERS

    def test_empty_selection_falls_back_to_lowercase(self):
        assert build_alphabet(set()) == string.ascii_lowercase

    def test_unknown_class_rejected(self):
        with pytest.raises(PasswordGenerationError):
            build_alphabet({'emoji'})


class TestGeneratePassword:
    def test_exact_length(self):
        for length in (1, 8, 16, 64):
            assert len(generate_password(length)) == length

    def test_characters_come_from_selected_classes(self):
        password = generate_password(200, {DIGIT})
        assert set(password) <= set(string.digits)

    def test_mixed_selection(self):
        allowed = set(string.ascii_uppercase + string.digits)
        assert set(generate_password(200, {UPPER, DIGIT})) <= allowed

    def test_no_classes_gives_lowercase(self):
        assert set(generate_password(50, [])) <= set(string.ascii_lowercase)

    def test_outputs_differ(self):
        assert generate_password(32) != generate_password(32)

    def test_non_positive_length_rejected(self):
        with pytest.raises(PasswordGenerationError):
            generate_password(0)


class TestClamping:
    @pytest.mark.parametrize("requested,expected", [
        (0, 8), (4, 8), (8, 8), (20, 20), (32, 32), (100, 32),
    ])
    def test_clamp_length(self, requested, expected):
        assert clamp_length(requested) == expected

    def test_safe_wrapper_clamps(self):
        success, password = generate_password_safe(4, {LOWER})
        assert success is True
        assert len(password) == 8

    def test_safe_wrapper_reports_errors(self):
        success, message = generate_password_safe(16, {'emoji'})
        assert success is False
        assert "emoji" in message
