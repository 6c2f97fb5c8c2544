"""Shared helpers for API route modules."""

from coop_banker.ledger.errors import TransferError, UnknownUserError


def transfer_error_status(exc: TransferError) -> int:
    """HTTP status for a rejected transfer: 404 for unknown members, else 400."""
    if isinstance(exc, UnknownUserError):
        return 404
    return 400


def parse_transfer_message(message: str) -> tuple[float, str, str]:
    """
    Parse a ``transfer;<amount>;<sender>;<receiver>`` WebSocket command.

    Raises:
        ValueError: If the message does not have exactly four fields or the
            amount is not a number.
    """
    parts = message.split(";")
    if len(parts) != 4 or parts[0] != "transfer":
        raise ValueError("expected transfer;<amount>;<sender>;<receiver>")
    _, raw_amount, sender, receiver = parts
    try:
        amount = float(raw_amount)
    except ValueError as exc:
        raise ValueError(f"invalid amount {raw_amount!r}") from exc
    return amount, sender.strip(), receiver.strip()
