from __future__ import annotations

from leaveflow.services.security import hash_password, verify_password


def test_hash_is_not_plaintext() -> None:
    hashed = hash_password("secret")
    assert hashed != "secret"
    assert hashed.startswith("$pbkdf2-sha256$")


def test_verify_password() -> None:
    hashed = hash_password("secret")
    assert verify_password("secret", hashed)
    assert not verify_password("Secret", hashed)


def test_hashes_are_salted() -> None:
    assert hash_password("secret") != hash_password("secret")
