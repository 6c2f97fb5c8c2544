"""Feed package - access to the Hypixel SkyBlock profile API."""

from coop_banker.feed.client import (
    BANK_UPGRADES,
    FeedClient,
    FeedPage,
    max_balance_capacity,
    to_feed_page,
)

__all__ = [
    "BANK_UPGRADES",
    "FeedClient",
    "FeedPage",
    "max_balance_capacity",
    "to_feed_page",
]
