"""Profile vault storage."""

from idwatch.vault.store import VaultStore

__all__ = ["VaultStore"]
