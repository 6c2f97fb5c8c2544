"""Co-op Banker - ledger reconciliation for a shared SkyBlock co-op bank.

Polls the Hypixel profile API for the co-op's bank transactions, folds them
into a locally persisted ledger, and serves a report of who put what into the
shared account.

Version Management
------------------
``__version__`` is read from the installed package metadata at import time.
The single source of truth is the ``version`` field in ``pyproject.toml``.
"""

from __future__ import annotations

from importlib.metadata import PackageNotFoundError, version

# ---------------------------------------------------------------------------
# Package version, read from pyproject.toml via importlib.metadata.
#
# If the package is imported without being installed (running straight from
# a checkout), fall back to the last released version so the server can
# still start.
# ---------------------------------------------------------------------------
try:
    __version__: str = version("coop-banker")
except PackageNotFoundError:
    __version__ = "0.3.0"
