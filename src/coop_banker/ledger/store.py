"""Single-file JSON persistence for the co-op ledger.

Overview
--------
The whole :class:`~coop_banker.ledger.types.LedgerState` lives in one JSON
file (``data/data.json`` by default).  It is read once at startup and
rewritten in full after every mutation.  There is exactly one writer: the
:class:`LedgerStore` instance owned by the banker service.

Schema gate
-----------
The file carries a ``version`` field.  :meth:`LedgerStore.load` refuses any
version other than :data:`~coop_banker.ledger.types.LEDGER_SCHEMA_VERSION`.
Versions 0 to 2 predate the operation-kind model and have no migration path;
they must be rebuilt by hand.

Mutation protocol
-----------------
All mutations go through :meth:`LedgerStore.transaction`::

    with store.transaction() as state:
        reconcile(state, page, balance, capacity)

1. The store lock is acquired.  Concurrent reconciliations and transfers
   queue here instead of interleaving.
2. A deep copy of the committed state is handed to the caller.
3. On normal exit the copy is written to a temporary file next to the
   ledger, fsynced, and moved over the ledger with :func:`os.replace`.
   Only then does it become the committed state.
4. On any exception (including a failed write) the copy is dropped.  Neither
   the file nor the committed state ever hold a half-applied batch.

Readers call :meth:`LedgerStore.snapshot` and get a private copy of the last
committed state.
"""

from __future__ import annotations

import copy
import json
import logging
import os
import tempfile
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

from coop_banker.ledger.errors import LedgerNotFoundError, LedgerStoreError, SchemaVersionError
from coop_banker.ledger.types import LEDGER_SCHEMA_VERSION, LedgerState

logger = logging.getLogger(__name__)

# Versions older than this were written by the pre-operation-kind prototypes.
_OLDEST_KNOWN_VERSION = 2


def check_schema_version(data: dict) -> None:
    """Raise :exc:`SchemaVersionError` unless ``data`` is at the current version."""
    found = data.get("version")
    if found == LEDGER_SCHEMA_VERSION:
        return
    if isinstance(found, int) and found < _OLDEST_KNOWN_VERSION:
        raise SchemaVersionError(found, LEDGER_SCHEMA_VERSION, "ledger file is too old")
    if found == _OLDEST_KNOWN_VERSION:
        raise SchemaVersionError(found, LEDGER_SCHEMA_VERSION, "no migration available")
    raise SchemaVersionError(found, LEDGER_SCHEMA_VERSION)


class LedgerStore:
    """Owner of the ledger file and of the single-writer lock.

    Args:
        path: Location of the JSON ledger file.
    """

    def __init__(self, path: Path | str) -> None:
        self.path = Path(path)
        self._lock = threading.Lock()
        self._state: LedgerState | None = None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def load(self) -> LedgerState:
        """Read the ledger file and make it the committed state.

        Raises:
            LedgerNotFoundError: The file does not exist.
            LedgerStoreError: The file cannot be read or decoded.
            SchemaVersionError: The file is not at the current version.
        """
        with self._lock:
            self._state = self._read()
            logger.info(
                "ledger: loaded %s (%d users, %d operations)",
                self.path,
                len(self._state.users),
                len(self._state.operations),
            )
            return copy.deepcopy(self._state)

    def create(self, *, overwrite: bool = False) -> LedgerState:
        """Write an empty ledger at the current schema version.

        Raises:
            LedgerStoreError: The file already exists and ``overwrite`` is
                false, or the write fails.
        """
        with self._lock:
            if self.path.exists() and not overwrite:
                raise LedgerStoreError(f"ledger {self.path} already exists")
            state = LedgerState()
            self._write(state)
            self._state = state
            logger.info("ledger: created empty ledger at %s", self.path)
            return copy.deepcopy(state)

    @property
    def is_loaded(self) -> bool:
        return self._state is not None

    # ------------------------------------------------------------------
    # Access
    # ------------------------------------------------------------------

    def snapshot(self) -> LedgerState:
        """Private copy of the last committed state."""
        with self._lock:
            return copy.deepcopy(self._committed())

    @contextmanager
    def transaction(self) -> Iterator[LedgerState]:
        """Serialized read-modify-flush; see the module docstring."""
        with self._lock:
            working = copy.deepcopy(self._committed())
            yield working
            self._write(working)
            self._state = working

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _committed(self) -> LedgerState:
        if self._state is None:
            raise LedgerStoreError("ledger has not been loaded")
        return self._state

    def _read(self) -> LedgerState:
        if not self.path.exists():
            raise LedgerNotFoundError(f"ledger file {self.path} does not exist")
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            raise LedgerStoreError(f"cannot read ledger {self.path}: {exc}") from exc
        if not isinstance(data, dict):
            raise LedgerStoreError(f"ledger {self.path} is not a JSON object")

        check_schema_version(data)
        try:
            return LedgerState.from_dict(data)
        except (KeyError, TypeError, ValueError) as exc:
            raise LedgerStoreError(f"ledger {self.path} is malformed: {exc}") from exc

    def _write(self, state: LedgerState) -> None:
        payload = json.dumps(state.to_dict(), ensure_ascii=False)
        try:
            _atomic_write_text(self.path, payload)
        except OSError as exc:
            raise LedgerStoreError(f"failed to flush ledger {self.path}: {exc}") from exc
        logger.debug("ledger: flushed %d bytes to %s", len(payload), self.path.name)


def _atomic_write_text(path: Path, text: str) -> None:
    """Write ``text`` to ``path`` via a fsynced temp file and :func:`os.replace`."""
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as fh:
            fh.write(text)
            fh.flush()
            os.fsync(fh.fileno())
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise
