"""Abstract base class for pluggable key-value storage.

The column configuration store only needs string get/set/remove, so any
medium (process memory, a JSON file, Redis, a browser bridge) can back it.
"""

# pylint: disable=unnecessary-ellipsis
# Ellipsis (...) is the standard Python idiom for abstract method bodies

from __future__ import annotations

from abc import ABC, abstractmethod


class KeyValueStore(ABC):
    """String-keyed, string-valued storage interface.

    Implementations raise ``StoreError`` on medium failures. Absence of a
    key is not an error: ``get`` returns None.
    """

    @abstractmethod
    def get(self, key: str) -> str | None:
        """Read a value.

        Parameters
        ----------
        key : str
            The storage key.

        Returns
        -------
        str or None
            The stored value, or None if the key is absent.
        """
        ...

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        """Write a value, replacing any previous one.

        Parameters
        ----------
        key : str
            The storage key.
        value : str
            The value to store.
        """
        ...

    @abstractmethod
    def remove(self, key: str) -> None:
        """Delete a key. Removing an absent key is a no-op.

        Parameters
        ----------
        key : str
            The storage key.
        """
        ...

    def keys(self, prefix: str = "") -> list[str]:
        """List stored keys starting with ``prefix``.

        Backends that cannot enumerate keys return an empty list.
        """
        return []
