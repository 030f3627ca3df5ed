"""Tests for fitout.units.credentials - generated unit logins."""

from __future__ import annotations

import pytest

from fitout.units.credentials import (
    PASSWORD_ALPHABET,
    build_username,
    check_password,
    generate_access_token,
    generate_password,
    hash_password,
    sanitize,
)


class TestBuildUsername:
    def test_project_and_unit_number(self):
        assert build_username("Harbour View", "101") == "harbourviewunit101"

    def test_strips_punctuation(self):
        assert build_username("St. Mary's Lofts", "B-12") == "stmaryslofts" + "unitb12"

    def test_missing_project_name_falls_back(self):
        assert build_username(None, "7") == "projectunit7"
        assert build_username("!!!", "7") == "projectunit7"


def test_sanitize_keeps_ascii_letters_and_digits():
    assert sanitize("Apt 4/B ü") == "Apt4B"


class TestGeneratePassword:
    def test_length_and_alphabet(self):
        password = generate_password(12)

        assert len(password) == 12
        assert set(password) <= set(PASSWORD_ALPHABET)

    def test_minimum_length(self):
        with pytest.raises(ValueError):
            generate_password(5)

    def test_passwords_differ(self):
        assert generate_password() != generate_password()


def test_access_token_is_32_hex_chars():
    token = generate_access_token()

    assert len(token) == 32
    int(token, 16)


class TestHashing:
    def test_only_bcrypt_hash_is_stored(self):
        password_hash = hash_password("s3cret-pass")

        assert password_hash != "s3cret-pass"
        assert password_hash.startswith("$2")
        assert check_password("s3cret-pass", password_hash)
        assert not check_password("wrong", password_hash)

    def test_missing_or_malformed_hash(self):
        assert not check_password("anything", None)
        assert not check_password("anything", "not-a-bcrypt-hash")
        assert not check_password("", hash_password("x"))
