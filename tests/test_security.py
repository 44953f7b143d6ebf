"""Unit tests for app.core.security: bcrypt hashing, verification and email normalization."""

import unittest

from app.core.security import hash_password, normalize_email, verify_password


class TestHashPassword(unittest.TestCase):
    """hash_password salts every call and embeds the salt in the digest."""

    def test_digest_is_not_plaintext(self) -> None:
        digest = hash_password("Secret123!", rounds=4)
        self.assertNotIn("Secret123!", digest)
        self.assertTrue(digest.startswith("$2"))

    def test_same_password_different_digests(self) -> None:
        self.assertNotEqual(
            hash_password("Secret123!", rounds=4), hash_password("Secret123!", rounds=4)
        )

    def test_cost_factor_embedded(self) -> None:
        digest = hash_password("Secret123!", rounds=5)
        self.assertEqual(digest.split("$")[2], "05")


class TestVerifyPassword(unittest.TestCase):
    """verify_password is self-contained and never raises."""

    def setUp(self) -> None:
        self.digest = hash_password("Secret123!", rounds=4)

    def test_correct_password(self) -> None:
        self.assertTrue(verify_password("Secret123!", self.digest))

    def test_wrong_password(self) -> None:
        self.assertFalse(verify_password("secret123!", self.digest))

    def test_malformed_digest_returns_false(self) -> None:
        self.assertFalse(verify_password("Secret123!", "not-a-bcrypt-hash"))

    def test_missing_digest_returns_false(self) -> None:
        self.assertFalse(verify_password("Secret123!", None))
        self.assertFalse(verify_password("Secret123!", ""))

    def test_empty_password_returns_false(self) -> None:
        self.assertFalse(verify_password("", self.digest))

    def test_long_password_truncated_consistently(self) -> None:
        long_pw = "x" * 100
        digest = hash_password(long_pw, rounds=4)
        self.assertTrue(verify_password(long_pw, digest))


class TestNormalizeEmail(unittest.TestCase):
    def test_trims_and_lowercases(self) -> None:
        self.assertEqual(normalize_email("  Alice@Example.COM "), "alice@example.com")

    def test_idempotent(self) -> None:
        once = normalize_email(" Bob@Example.com")
        self.assertEqual(normalize_email(once), once)

    def test_none_safe(self) -> None:
        self.assertEqual(normalize_email(None), "")


if __name__ == "__main__":
    unittest.main()
