"""
Transaction ledger for adservice.

Operations never commit directory changes themselves. They ask the ledger for
the entry of a distinguished name, stage changes on its handle and flag it.
Draining the ledger commits every flagged entry once, then refreshes every
committed or refresh-flagged entry once. The ledger owns the handles and
releases each of them exactly once when it is disposed.
"""

import enum
from typing import Dict, Iterator, List, Optional, Set

from adservice.lib.errors import ADServiceError, LogicError
from adservice.lib.ldap import DirectoryEntry, LDAPConnection
from adservice.lib.logger import logging


class EntryState(enum.Enum):
    CLEAN = "clean"
    COMMIT_PENDING = "commit-pending"
    REFRESH_PENDING = "refresh-pending"


class PendingEntry:
    """
    One directory entry touched during an invocation.

    Attributes:
        dn: Distinguished name the entry was registered under
        handle: Handle on the directory object
        refresh_names: Attributes to re-read; empty means all of them
    """

    def __init__(self, dn: str, handle: DirectoryEntry) -> None:
        self.dn = dn
        self.handle = handle
        self.commit_required = False
        self.refresh_required = False
        self.refresh_names: Set[str] = set()

    @property
    def state(self) -> EntryState:
        # A commit implies a refresh, so it dominates
        if self.commit_required:
            return EntryState.COMMIT_PENDING
        if self.refresh_required:
            return EntryState.REFRESH_PENDING
        return EntryState.CLEAN

    def reset(self) -> None:
        self.commit_required = False
        self.refresh_required = False
        self.refresh_names = set()

    def __repr__(self) -> str:
        return f"<PendingEntry {self.dn!r} ({self.state.value})>"


class TransactionLedger:
    """
    Map from distinguished name to the pending entry of that name.

    Each name has at most one entry; distinguished names compare
    case-insensitively.
    """

    def __init__(self, connection: LDAPConnection) -> None:
        self.connection = connection
        self._entries: Dict[str, PendingEntry] = {}
        self._is_disposed = False

    def __enter__(self) -> "TransactionLedger":
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        self.dispose()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, dn: object) -> bool:
        return isinstance(dn, str) and dn.lower() in self._entries

    def __iter__(self) -> Iterator[PendingEntry]:
        return iter(list(self._entries.values()))

    def _check_open(self) -> None:
        if self._is_disposed:
            raise LogicError("Transaction ledger has already been disposed")

    def get(self, dn: str) -> Optional[PendingEntry]:
        return self._entries.get(dn.lower())

    def get_or_create(self, dn: str) -> PendingEntry:
        """
        Get the entry of a distinguished name, loading the object on first use.

        Args:
            dn: Distinguished name of the object

        Returns:
            The same PendingEntry for every call with the same name

        Raises:
            NotFoundError: If the object does not exist
        """
        self._check_open()

        entry = self._entries.get(dn.lower())
        if entry is None:
            entry = PendingEntry(dn, self.connection.get_by_dn(dn))
            self._entries[dn.lower()] = entry
        return entry

    def register(self, handle: DirectoryEntry) -> PendingEntry:
        """
        Take ownership of a handle created during the invocation.

        Raises:
            LogicError: If an entry with the same name is already registered
        """
        self._check_open()

        if handle.dn.lower() in self._entries:
            raise LogicError(f"Entry {handle.dn!r} is already part of the transaction")

        entry = PendingEntry(handle.dn, handle)
        self._entries[handle.dn.lower()] = entry
        return entry

    def mark_commit_required(self, entry: PendingEntry) -> None:
        self._check_open()
        entry.commit_required = True

    def mark_refresh_required(
        self, entry: PendingEntry, attribute_names: Optional[List[str]] = None
    ) -> None:
        """
        Flag an entry for refreshing after the commit pass.

        Args:
            entry: Entry to refresh
            attribute_names: Attributes to re-read; all attributes when omitted
        """
        self._check_open()

        if entry.refresh_required and not entry.refresh_names:
            # Already refreshing everything
            return

        if attribute_names:
            entry.refresh_names.update(attribute_names)
        else:
            entry.refresh_names = set()
        entry.refresh_required = True

    def drain(self) -> Dict[str, DirectoryEntry]:
        """
        Commit and refresh the flagged entries.

        Every commit-pending entry is committed once, then every entry that was
        committed or is refresh-pending is refreshed once.

        Returns:
            Map from current distinguished name to handle, one item per entry
            touched by the drain
        """
        self._check_open()

        committed: List[PendingEntry] = []
        for entry in self._entries.values():
            if entry.state is EntryState.COMMIT_PENDING:
                logging.debug(f"Committing {entry.handle.dn!r}")
                self.connection.commit(entry.handle)
                committed.append(entry)

        refreshed: List[PendingEntry] = []
        for entry in self._entries.values():
            if entry.commit_required or entry.refresh_required:
                names = None
                if not entry.commit_required and entry.refresh_names:
                    names = sorted(entry.refresh_names)
                logging.debug(f"Refreshing {entry.handle.dn!r}")
                self.connection.refresh(entry.handle, names)
                refreshed.append(entry)

        result: Dict[str, DirectoryEntry] = {}
        for entry in committed + refreshed:
            result.setdefault(entry.handle.dn, entry.handle)
            entry.reset()

        return result

    def dispose(self) -> None:
        """Release every owned handle; calling it again does nothing."""
        if self._is_disposed:
            return

        self._is_disposed = True
        entries = list(self._entries.values())
        self._entries.clear()

        errors: List[ADServiceError] = []
        for entry in entries:
            try:
                self.connection.dispose(entry.handle)
            except ADServiceError as e:
                logging.warning(f"Failed to release {entry.dn!r}: {e}")
                errors.append(e)

        if errors:
            raise errors[0]
