"""Storage abstraction layer."""

from __future__ import annotations

from abc import ABC, abstractmethod


class AbstractStorage(ABC):
    """Interface for image storage backends.

    A *reference* is the opaque name returned by :meth:`store`; records keep
    the reference, clients receive :meth:`public_url_for`.
    """

    @abstractmethod
    async def store(self, data: bytes, content_type: str | None, filename: str | None = None) -> str:
        """Persist an uploaded image and return its reference.

        Raises ``TooLarge`` or ``UnsupportedType`` before anything is written.
        """

    @abstractmethod
    async def delete(self, reference: str) -> bool:
        """Remove a stored file. Returns False when there was nothing to remove."""

    @abstractmethod
    def reference_for(self, value: str) -> str | None:
        """Map a reference or public URL onto the stored file's reference.

        Returns None when no stored file matches.
        """

    def exists(self, reference: str) -> bool:
        """Return whether the reference points at a stored file."""
        return self.reference_for(reference) is not None

    @abstractmethod
    def public_url_for(self, reference: str) -> str:
        """Return the URL under which the stored file is served."""
