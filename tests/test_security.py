import re

from speechable.utils.security import (
    generate_pin,
    generate_throwaway_password,
    hash_password,
    hash_pin,
    verify_password,
)


class TestPasswordHashing:
    def test_hash_differs_from_plaintext(self):
        """Stored digest should never equal the submitted password."""
        assert hash_password("s3cret-pass") != "s3cret-pass"

    def test_equal_passwords_hash_differently(self):
        """Salted hashes of the same password should differ."""
        assert hash_password("s3cret-pass") != hash_password("s3cret-pass")

    def test_verify_roundtrip(self):
        digest = hash_password("s3cret-pass")
        assert verify_password("s3cret-pass", digest)
        assert not verify_password("wrong-pass", digest)

    def test_verify_rejects_empty_input(self):
        assert not verify_password("", hash_password("s3cret-pass"))
        assert not verify_password("s3cret-pass", "")


class TestPinHashing:
    def test_pin_is_four_digits(self):
        for _ in range(50):
            assert re.fullmatch(r"\d{4}", generate_pin())

    def test_pin_hash_is_deterministic_sha256(self):
        assert hash_pin("4821") == hash_pin("4821")
        assert hash_pin("4821") != hash_pin("4822")
        assert re.fullmatch(r"[0-9a-f]{64}", hash_pin("4821"))
        assert hash_pin("4821") != "4821"


def test_throwaway_password_is_random():
    assert generate_throwaway_password() != generate_throwaway_password()
    assert len(generate_throwaway_password()) == 32
