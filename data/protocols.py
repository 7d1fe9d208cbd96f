"""
Data Layer Protocol Definitions

This module defines typing.Protocol interfaces for data layer operations.
These protocols enable dependency injection for cache operations,
making the pipeline testable without a real database file.

Protocols defined:
- FavoriteStorage: Interface for the persistent favorite cache
"""

from typing import Protocol, Optional, List

from data.models import FavoriteRecord


class FavoriteStorage(Protocol):
    """Protocol defining the interface for favorite cache operations.

    Implementations should provide methods for:
    - Checking and inserting favorites along with their media URIs
    - Reading and flipping the per-favorite completion flag
    - Bulk resetting completion for a forced re-download pass
    - Reporting extremal ids for diagnostics

    Any storage failure must surface as CacheUnavailableError.
    """

    def exists(self, favorite_id: int) -> bool:
        """Return True if the favorite is cached."""
        ...

    def insert_pending(self, record: FavoriteRecord, media_uris: List[str]) -> None:
        """Insert a favorite in the pending state together with its media URIs.

        Raises:
            DuplicateFavoriteError: If the id is already cached.
        """
        ...

    def is_complete(self, favorite_id: int) -> bool:
        """Return True if every media item of the favorite has been downloaded."""
        ...

    def mark_complete(self, favorite_id: int) -> bool:
        """Mark the favorite complete. Returns False if the id is unknown."""
        ...

    def reset_all(self) -> bool:
        """Set every favorite back to pending. Returns True if any row changed."""
        ...

    def latest(self) -> Optional[int]:
        """Return the highest cached id, or None when empty."""
        ...

    def oldest(self) -> Optional[int]:
        """Return the lowest cached id, or None when empty."""
        ...
