"""Tests for field-level decryption and its empty-string fallback"""
import logging

import pytest
from cryptography.fernet import Fernet

from vetclinic.encryption import DecryptError, FieldCipher, decrypt_or_empty


def test_decrypts_values_encrypted_with_same_key(cipher):
    token = cipher.encrypt("Canino")

    assert token != "Canino"
    assert cipher.decrypt(token) == "Canino"


def test_decrypt_raises_for_invalid_token(cipher):
    with pytest.raises(DecryptError):
        cipher.decrypt("plain text value")


def test_decrypt_raises_for_other_key(cipher):
    other = FieldCipher(Fernet.generate_key().decode())

    with pytest.raises(DecryptError):
        cipher.decrypt(other.encrypt("Luna"))


def test_decrypt_or_empty_falls_back_and_logs(cipher, caplog):
    with caplog.at_level(logging.ERROR, logger="vetclinic.encryption"):
        assert decrypt_or_empty(cipher, "garbage") == ""

    assert "Error decrypting field" in caplog.text


@pytest.mark.parametrize("value", [None, ""])
def test_decrypt_or_empty_for_missing_values(cipher, value):
    assert decrypt_or_empty(cipher, value) == ""


def test_without_key_values_pass_through():
    cipher = FieldCipher(None)

    assert cipher.encrypt("Luna") == "Luna"
    assert cipher.decrypt("Luna") == "Luna"
