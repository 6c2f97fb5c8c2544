"""Initiator-name normalization.

The bank feed reports who initiated each transaction as a *display* name:
ranked players carry a Minecraft colour code in front of their name
(``"§bAlice"``), and interest payouts are attributed to a pseudo-player whose
spelling depends on whether the co-op has the double-interest perk.

This module turns such a name into either a :class:`Username` or a
bank-interest flag.  It is pure; the reconciler and transfer processor are
its only callers.
"""

from __future__ import annotations

from dataclasses import dataclass

from coop_banker.ledger.errors import MalformedRecordError
from coop_banker.ledger.types import StyledUsername, Username

# Style marker that opens a Minecraft formatting code.  It is always followed
# by exactly one code character (e.g. "§a").
STYLE_MARKER = "§"
_STYLE_CODE_WIDTH = 2

# Display spellings the feed uses for interest payouts.  "(x2)" is the
# double-interest perk; it folds into the same actor.
BANK_INTEREST_SPELLINGS = frozenset({"Bank Interest", "Bank Interest (x2)"})

# Canonical name of the interest actor.  Never a valid transfer party.
BANK_INTEREST_ACTOR = Username("@bank-interest")


@dataclass(frozen=True, slots=True)
class NormalizedInitiator:
    """Result of :func:`normalize_initiator`.

    Exactly one of the two is meaningful: ``username`` is ``None`` when
    ``is_bank_interest`` is set.
    """

    username: Username | None
    is_bank_interest: bool = False


def normalize_initiator(raw: str) -> NormalizedInitiator:
    """Classify a raw initiator name.

    Args:
        raw: Name as reported by the feed.

    Returns:
        ``NormalizedInitiator(None, True)`` for a bank-interest spelling,
        otherwise the name with a leading style code stripped.

    Raises:
        MalformedRecordError: If ``raw`` is empty, or is nothing but a style
            code.
    """
    try:
        styled = StyledUsername(raw)
    except (TypeError, ValueError) as exc:
        raise MalformedRecordError(f"invalid initiator name {raw!r}") from exc

    if styled in BANK_INTEREST_SPELLINGS:
        return NormalizedInitiator(username=None, is_bank_interest=True)

    name = str(styled)
    if name.startswith(STYLE_MARKER):
        name = name[_STYLE_CODE_WIDTH:]
    if not name:
        raise MalformedRecordError(f"initiator name {raw!r} has no name after its style code")
    return NormalizedInitiator(username=Username(name))


def is_reserved_actor(name: str) -> bool:
    """True if ``name`` designates the bank-interest pseudo-actor."""
    return name == BANK_INTEREST_ACTOR or name in BANK_INTEREST_SPELLINGS
