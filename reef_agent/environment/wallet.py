"""Entry-fee payment over an EVM JSON-RPC endpoint."""

from __future__ import annotations

import logging
import re
from decimal import Decimal, InvalidOperation
from typing import Any

from eth_account import Account
from web3 import Web3

from reef_agent.runtime.recovery import PaymentError, RegistrationError

logger = logging.getLogger(__name__)

_WEI_PATTERN = re.compile(r"^\d{15,}$")
_FEE_KEYS = ("entryFee", "entry_fee", "fee")
_NESTED_FEE_KEYS = ("current", "amount", "value", "fee", "price", "cost")


def parse_entry_fee(season: dict[str, Any]) -> Decimal:
    """Extract the entry fee in whole tokens from a season payload.

    The fee may be a number, a numeric string, or an object carrying the
    amount under one of several keys. Integers of 15 or more digits are
    wei and are converted to ether.

    Raises:
        RegistrationError: If no fee can be found or parsed.
    """
    raw: Any = None
    for key in _FEE_KEYS:
        if season.get(key) is not None:
            raw = season[key]
            break
    if raw is None or raw == "":
        raise RegistrationError(f"could not determine entry fee from season: {season!r}")

    if isinstance(raw, dict):
        value = next((raw[k] for k in _NESTED_FEE_KEYS if raw.get(k) is not None), None)
        if value is None:
            raise RegistrationError(f"entry fee is object but couldn't extract amount: {raw!r}")
        raw = value

    text = str(raw).strip()
    if _WEI_PATTERN.match(text):
        return Decimal(Web3.from_wei(int(text), "ether"))
    try:
        return Decimal(text)
    except InvalidOperation as e:
        raise RegistrationError(f"entry fee is not numeric: {text!r}") from e


def wallet_address(private_key: str) -> str:
    """Lower-cased address for a private key."""
    return str(Account.from_key(private_key).address).lower()


class EntryFeeWallet:
    """Pays the one-time entry fee by calling ``enter()`` on the game contract."""

    def __init__(
        self,
        private_key: str,
        rpc_url: str,
        contract_address: str,
        selector: str,
        chain_id: int | None = None,
        receipt_timeout: float = 180.0,
        web3: Web3 | None = None,
    ) -> None:
        self._account = Account.from_key(private_key)
        self._web3 = web3 or Web3(Web3.HTTPProvider(rpc_url))
        self._contract = Web3.to_checksum_address(contract_address)
        self._selector = selector
        self._chain_id = chain_id
        self._receipt_timeout = receipt_timeout

    @property
    def address(self) -> str:
        return str(self._account.address).lower()

    def pay_entry_fee(self, amount: Decimal) -> str:
        """Send the fee and block until the transaction is mined.

        Returns:
            The transaction hash as a hex string.

        Raises:
            PaymentError: If submission fails or the transaction reverts.
        """
        client = self._web3
        try:
            tx: dict[str, Any] = {
                "from": self._account.address,
                "to": self._contract,
                "data": self._selector,
                "value": Web3.to_wei(amount, "ether"),
                "nonce": client.eth.get_transaction_count(self._account.address),
                "chainId": self._chain_id or client.eth.chain_id,
                "gasPrice": client.eth.gas_price,
            }
            tx["gas"] = client.eth.estimate_gas(tx)
            signed = self._account.sign_transaction(tx)
            tx_hash = client.eth.send_raw_transaction(signed.raw_transaction)
        except Exception as e:
            raise PaymentError(f"entry tx could not be sent: {e}") from e

        tx_hex = Web3.to_hex(tx_hash)
        logger.info("[PAYMENT] Tx sent: %s, waiting for confirmation...", tx_hex)
        try:
            receipt = client.eth.wait_for_transaction_receipt(tx_hash, timeout=self._receipt_timeout)
        except Exception as e:
            raise PaymentError(f"entry tx not confirmed: {tx_hex}: {e}") from e

        if receipt["status"] != 1:
            raise PaymentError(f"entry tx reverted: {tx_hex}")
        logger.info("[PAYMENT] Entry fee paid in block %s", receipt["blockNumber"])
        return tx_hex
