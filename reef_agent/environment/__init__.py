"""Reef service access: HTTP client, entry-fee wallet and registration."""

from reef_agent.environment.client import ReefClient
from reef_agent.environment.registration import RegistrationFlow, RegistrationState
from reef_agent.environment.wallet import EntryFeeWallet, parse_entry_fee, wallet_address

__all__ = [
    "EntryFeeWallet",
    "ReefClient",
    "RegistrationFlow",
    "RegistrationState",
    "parse_entry_fee",
    "wallet_address",
]
