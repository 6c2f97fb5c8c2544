"""
Pydantic models for the Hypixel SkyBlock profile response.

Only the fields the banker reads are declared; everything else in the
(very large) profile document is ignored during validation.

Shape:

    {
      "success": true,
      "profile": {
        "profile_id": "...",
        "members": {"<uuid>": {"leveling": {"completed_tasks": ["BANK_UPGRADE_GOLD", ...]}}},
        "banking": {
          "balance": 1234567.8,
          "transactions": [
            {"amount": 100000, "timestamp": 1717000000000,
             "action": "DEPOSIT", "initiator_name": "§bAlice"}
          ]
        }
      }
    }

or, on failure, ``{"success": false, "cause": "Invalid API key"}``.
"""

from pydantic import BaseModel, Field

from coop_banker.ledger.types import TransactionAction


class Transaction(BaseModel):
    """One bank transaction as reported by the API."""

    amount: float = Field(ge=0)
    timestamp: int
    action: TransactionAction
    initiator_name: str


class Banking(BaseModel):
    """Co-op bank section of the profile."""

    balance: float
    transactions: list[Transaction] = Field(default_factory=list)


class Leveling(BaseModel):
    completed_tasks: list[str] = Field(default_factory=list)


class Member(BaseModel):
    leveling: Leveling = Field(default_factory=Leveling)


class Profile(BaseModel):
    """The parts of a SkyBlock profile the banker uses."""

    profile_id: str | None = None
    members: dict[str, Member] = Field(default_factory=dict)
    banking: Banking


class ProfileResponse(BaseModel):
    """Envelope returned by ``/v2/skyblock/profile``."""

    success: bool
    profile: Profile | None = None
    cause: str | None = None
