"""
Storage Interface - Abstract base class for document storage backends.
Session and user stores are written against this interface so the local
filesystem backend can be swapped for a database-backed one.
"""

from abc import ABC, abstractmethod
from typing import Optional, List


class StorageInterface(ABC):
    """Contract for all storage implementations."""

    @abstractmethod
    async def save(self, path: str, content: bytes | str) -> bool:
        """
        Save content to the specified path, replacing any existing document.

        Args:
            path: Relative path (e.g., "sessions/<id>.json")
            content: Content to save

        Returns:
            bool: True if save was successful, False otherwise
        """
        pass

    @abstractmethod
    async def load(self, path: str) -> Optional[bytes]:
        """
        Load content from the specified path.

        Returns:
            Optional[bytes]: Content, or None if the document doesn't exist
        """
        pass

    @abstractmethod
    async def exists(self, path: str) -> bool:
        pass

    @abstractmethod
    async def delete(self, path: str) -> bool:
        """
        Delete the document at the specified path.

        Returns:
            bool: True if a document was deleted
        """
        pass

    @abstractmethod
    async def list(self, path: str, pattern: Optional[str] = None) -> List[str]:
        """
        List documents directly under a directory.

        Args:
            path: Directory path to list
            pattern: Optional glob pattern (e.g., "*.json")

        Returns:
            List[str]: Sorted relative paths
        """
        pass
