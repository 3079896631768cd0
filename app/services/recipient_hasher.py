"""Recipient identifier hashing for privacy protection.

This module derives the pseudonymous recipient id that travels inside
response tokens and keys duplicate detection. Email addresses are hashed
with SHA-256 and the application secret, so the same address always maps
to the same id while the id itself never reveals the address.
"""

import hashlib
import secrets
from typing import Optional


RECIPIENT_ID_LENGTH = 16


class RecipientHasher:
    """
    One-way hashing service for recipient identifiers.

    Recipient ids are the deduplication key for responses, so they must be
    stable across repeated link issuance to the same person. Hashing lets us:
    - Detect a second response from the same recipient (deterministic hash)
    - Issue links without embedding an email address in the URL
    - Never store plaintext email addresses

    Security notes:
    - The secret is shared with token signing; rotating it re-keys every
      recipient, so previously recorded recipients will no longer match
    - Ids are truncated to 16 hex chars (64 bits), ample for per-survey
      uniqueness

    Usage example:
        hasher = RecipientHasher(secret)
        recipient_id = hasher.hash_email("alice@example.com")
        logger.info(f"Issued links for {RecipientHasher.truncate_for_logging(recipient_id)}")
    """

    def __init__(self, secret: str):
        self._secret = secret

    @staticmethod
    def normalize_email(email: str) -> str:
        """
        Normalize an email address before hashing.

        Example:
            >>> RecipientHasher.normalize_email("  Alice@Example.COM ")
            'alice@example.com'
        """
        return email.strip().lower()

    def _digest(self, source: str) -> str:
        salted = f"{source}{self._secret}"
        return hashlib.sha256(salted.encode("utf-8")).hexdigest()[:RECIPIENT_ID_LENGTH]

    def hash_email(self, email: str) -> str:
        """
        One-way hash of an email address with the application secret.

        Args:
            email: Recipient email address

        Returns:
            16-character hex string

        Example:
            >>> hasher.hash_email("alice@example.com") == hasher.hash_email("ALICE@example.com")
            True
        """
        return self._digest(self.normalize_email(email))

    def anonymous_id(self) -> str:
        """Derive a fresh, probabilistically unique id from random bytes."""
        return self._digest(secrets.token_hex(16))

    def generate(self, email: Optional[str] = None) -> str:
        """Hash ``email`` when given, otherwise mint an anonymous id."""
        if email and email.strip():
            return self.hash_email(email)
        return self.anonymous_id()

    @staticmethod
    def truncate_for_logging(recipient_id: str) -> str:
        """
        Truncate an id for safe logging (first 8 chars).

        Example:
            >>> RecipientHasher.truncate_for_logging("a1b2c3d4e5f60718")
            'a1b2c3d4...'
        """
        return f"{recipient_id[:8]}..."
