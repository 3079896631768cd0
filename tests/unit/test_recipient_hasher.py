"""Unit tests for recipient id hashing."""

from app.services.recipient_hasher import RecipientHasher


class TestRecipientHasher:
    """Test suite for RecipientHasher class."""

    def test_deterministic_hashing(self):
        """Test that same email produces same id."""
        hasher = RecipientHasher("secret-one-secret-one")
        assert hasher.hash_email("alice@example.com") == hasher.hash_email("alice@example.com")

    def test_id_format(self):
        """Test that ids are 16 lowercase hex chars."""
        recipient_id = RecipientHasher("secret-one-secret-one").hash_email("alice@example.com")

        assert len(recipient_id) == 16
        assert all(c in "0123456789abcdef" for c in recipient_id)

    def test_id_does_not_contain_email(self):
        recipient_id = RecipientHasher("secret-one-secret-one").hash_email("alice@example.com")
        assert "alice" not in recipient_id

    def test_different_emails_produce_different_ids(self):
        hasher = RecipientHasher("secret-one-secret-one")
        assert hasher.hash_email("alice@example.com") != hasher.hash_email("bob@example.com")

    def test_secret_changes_id(self):
        """Ids are salted: another secret yields another id."""
        email = "alice@example.com"
        assert (
            RecipientHasher("secret-one-secret-one").hash_email(email)
            != RecipientHasher("secret-two-secret-two").hash_email(email)
        )

    def test_normalization_ignores_case_and_whitespace(self):
        hasher = RecipientHasher("secret-one-secret-one")
        assert hasher.hash_email("  Alice@Example.COM ") == hasher.hash_email("alice@example.com")

    def test_anonymous_ids_are_unique(self):
        hasher = RecipientHasher("secret-one-secret-one")
        ids = {hasher.generate() for _ in range(50)}

        assert len(ids) == 50
        assert all(len(i) == 16 for i in ids)

    def test_generate_with_blank_email_is_anonymous(self):
        hasher = RecipientHasher("secret-one-secret-one")
        assert hasher.generate("   ") != hasher.generate("   ")

    def test_generate_with_email_is_stable(self):
        hasher = RecipientHasher("secret-one-secret-one")
        assert hasher.generate("alice@example.com") == hasher.hash_email("alice@example.com")

    def test_truncation_format(self):
        """Test that truncation keeps 8 chars plus '...'."""
        truncated = RecipientHasher.truncate_for_logging("a1b2c3d4e5f60718")

        assert truncated == "a1b2c3d4..."
