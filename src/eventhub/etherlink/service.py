"""
Client for the Sepolia prize escrow contract.

The contract holds ETH for event prizes: `lockFunds()` (payable) tops it up,
`distributeFunds(recipient, amount)` pays a winner, `getBalance()` and `host()` are views.
Transactions are signed locally with the configured private key and sent raw.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from datetime import datetime, timezone
from functools import lru_cache
from typing import Any

import structlog
from eth_account import Account
from web3 import AsyncHTTPProvider, AsyncWeb3, Web3

from eventhub.config import Settings, get_settings
from eventhub.etherlink.abi import CONTRACT_ABI
from eventhub.etherlink.units import format_ether, parse_ether

logger = structlog.get_logger()

BALANCE_UNIT = "ETH"

CHAIN_NAMES = {
    1: "mainnet",
    5: "goerli",
    17000: "holesky",
    11155111: "sepolia",
}


class EtherlinkError(Exception):
    """Raised when a contract or provider operation fails."""


def network_name(chain_id: int) -> str:
    return CHAIN_NAMES.get(chain_id, "unknown")


def _http_web3(url: str) -> AsyncWeb3:
    return AsyncWeb3(AsyncHTTPProvider(url))


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class EtherlinkService:
    """Wraps one web3 client, the signing account and the contract handle."""

    def __init__(
        self,
        settings: Settings,
        web3: AsyncWeb3 | None = None,
        account: Any = None,
        provider_factory: Callable[[str], AsyncWeb3] | None = None,
    ) -> None:
        if not settings.etherlink_rpc_urls:
            msg = "At least one RPC URL must be configured"
            raise EtherlinkError(msg)

        self.settings = settings
        self.contract_address = Web3.to_checksum_address(settings.etherlink_contract_address)
        self.provider_factory = provider_factory or _http_web3
        self.web3 = web3 if web3 is not None else self.provider_factory(settings.etherlink_rpc_urls[0])

        if account is None and settings.etherlink_private_key:
            account = Account.from_key(settings.etherlink_private_key)
        self.account = account

        self.contract = self.web3.eth.contract(address=self.contract_address, abi=CONTRACT_ABI)

        logger.info(
            "etherlink_initialized",
            contract=self.contract_address,
            wallet=self.wallet_address,
            rpc_url=settings.etherlink_rpc_urls[0],
        )

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @property
    def wallet_address(self) -> str | None:
        return self.account.address if self.account is not None else None

    def _require_account(self) -> Any:
        if self.account is None:
            msg = "Wallet is not configured (set EVENTHUB_ETHERLINK_PRIVATE_KEY)"
            raise EtherlinkError(msg)
        return self.account

    async def _network(self, web3: AsyncWeb3 | None = None) -> dict[str, str]:
        chain_id = await (web3 or self.web3).eth.chain_id
        return {"name": network_name(chain_id), "chain_id": str(chain_id)}

    async def _code(self, web3: AsyncWeb3 | None = None) -> bytes:
        return bytes(await (web3 or self.web3).eth.get_code(self.contract_address))

    async def _require_deployed(self) -> None:
        if not await self._code():
            msg = (
                f"Contract not found at address {self.contract_address}. "
                "Please verify the contract is deployed."
            )
            raise EtherlinkError(msg)

    async def _transact(self, function: Any, value: int = 0) -> dict[str, Any]:
        """Build, sign and send a contract transaction, then wait for its receipt."""
        account = self._require_account()
        nonce = await self.web3.eth.get_transaction_count(account.address, "pending")

        params: dict[str, Any] = {
            "from": account.address,
            "nonce": nonce,
            "gas": self.settings.etherlink_gas_limit,
            "chainId": self.settings.etherlink_chain_id,
        }
        if value:
            params["value"] = value

        tx = await function.build_transaction(params)
        signed = account.sign_transaction(tx)
        tx_hash = await self.web3.eth.send_raw_transaction(signed.raw_transaction)
        hex_hash = Web3.to_hex(tx_hash)
        logger.info("etherlink_tx_sent", tx_hash=hex_hash)

        receipt = await self.web3.eth.wait_for_transaction_receipt(
            tx_hash, timeout=self.settings.etherlink_tx_timeout_seconds
        )
        if receipt["status"] != 1:
            msg = f"Transaction {hex_hash} reverted"
            raise EtherlinkError(msg)

        logger.info("etherlink_tx_confirmed", tx_hash=hex_hash, block=receipt["blockNumber"])
        return {
            "transaction_hash": hex_hash,
            "block_number": receipt["blockNumber"],
            "gas_used": str(receipt["gasUsed"]),
        }

    # ------------------------------------------------------------------
    # Transactions
    # ------------------------------------------------------------------

    async def distribute_funds(self, recipient: str, amount_ether: str) -> dict[str, Any]:
        """
        Pay `amount_ether` from the contract to `recipient`.

        Raises:
            EtherlinkError: On an invalid address or amount, insufficient contract
                balance, or any provider/contract failure.
        """
        logger.info("etherlink_distribute", recipient=recipient, amount=amount_ether)

        if not Web3.is_address(recipient):
            msg = "Invalid recipient address"
            raise EtherlinkError(msg)
        try:
            amount_wei = parse_ether(amount_ether)
        except ValueError as e:
            raise EtherlinkError(str(e)) from e

        balance = await self.get_contract_balance()
        if balance < amount_wei:
            msg = f"Insufficient contract balance. Available: {format_ether(balance)} {BALANCE_UNIT}"
            raise EtherlinkError(msg)

        recipient = Web3.to_checksum_address(recipient)
        try:
            result = await self._transact(self.contract.functions.distributeFunds(recipient, amount_wei))
        except EtherlinkError:
            raise
        except Exception as e:
            logger.error("etherlink_distribute_failed", error=str(e))
            msg = f"Failed to distribute funds: {e}"
            raise EtherlinkError(msg) from e

        return {
            **result,
            "recipient": recipient,
            "amount": amount_ether,
            "amount_in_wei": str(amount_wei),
        }

    async def lock_funds(self, amount_ether: str) -> dict[str, Any]:
        """
        Send `amount_ether` to the contract through the payable `lockFunds()`.

        Raises:
            EtherlinkError: On an invalid amount or any provider/contract failure.
        """
        logger.info("etherlink_lock", amount=amount_ether)
        try:
            amount_wei = parse_ether(amount_ether)
        except ValueError as e:
            raise EtherlinkError(str(e)) from e

        try:
            result = await self._transact(self.contract.functions.lockFunds(), value=amount_wei)
        except EtherlinkError:
            raise
        except Exception as e:
            logger.error("etherlink_lock_failed", error=str(e))
            msg = f"Failed to lock funds: {e}"
            raise EtherlinkError(msg) from e

        return {**result, "amount": amount_ether, "amount_in_wei": str(amount_wei)}

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def get_contract_balance(self) -> int:
        """Contract balance in wei; falls back to the provider balance when the call fails."""
        try:
            await self._require_deployed()
            return await self.contract.functions.getBalance().call()
        except Exception as e:
            logger.error("etherlink_contract_balance_failed", error=str(e))
            try:
                balance = await self.web3.eth.get_balance(self.contract_address)
            except Exception as provider_error:
                logger.error("etherlink_provider_balance_failed", error=str(provider_error))
                msg = f"Failed to get contract balance: {e}"
                raise EtherlinkError(msg) from provider_error
            logger.warning("etherlink_using_provider_balance")
            return balance

    async def get_contract_balance_in_ether(self) -> str:
        return format_ether(await self.get_contract_balance())

    async def get_wallet_balance(self) -> str:
        """Balance of the signing wallet in ether."""
        account = self._require_account()
        try:
            balance = await self.web3.eth.get_balance(account.address)
        except Exception as e:
            msg = f"Failed to get wallet balance: {e}"
            raise EtherlinkError(msg) from e
        return format_ether(balance)

    async def get_host_address(self) -> str:
        """Address stored in the contract's `host` slot."""
        try:
            await self._require_deployed()
            return await self.contract.functions.host().call()
        except Exception as e:
            logger.error("etherlink_host_failed", error=str(e))
            msg = f"Failed to get host address: {e}"
            raise EtherlinkError(msg) from e

    async def get_contract_status(self) -> dict[str, Any]:
        """Network, deployment, balances and host in one snapshot."""
        try:
            network = await self._network()
            deployed = bool(await self._code())
            contract_balance = await self.web3.eth.get_balance(self.contract_address)
            wallet_balance = None
            if self.account is not None:
                wallet_balance = format_ether(await self.web3.eth.get_balance(self.account.address))
        except Exception as e:
            logger.error("etherlink_status_failed", error=str(e))
            msg = f"Failed to get contract status: {e}"
            raise EtherlinkError(msg) from e

        host = None
        if deployed:
            try:
                host = await self.contract.functions.host().call()
            except Exception as e:
                logger.warning("etherlink_status_host_failed", error=str(e))

        return {
            "network": network,
            "contract": {
                "address": self.contract_address,
                "is_deployed": deployed,
                "balance": format_ether(contract_balance),
                "balance_unit": BALANCE_UNIT,
                "host_address": host,
            },
            "wallet": {
                "address": self.wallet_address,
                "balance": wallet_balance,
                "balance_unit": BALANCE_UNIT,
            },
        }

    # ------------------------------------------------------------------
    # Diagnostics
    # ------------------------------------------------------------------

    async def diagnose_connection(self) -> dict[str, Any]:
        """
        Run the connection checks in order; a failing check never stops the next one.

        `code_length` is the length of the 0x-prefixed hex code, so an empty account reports 2.
        """
        checks: list[dict[str, Any]] = []

        async def check(name: str, probe: Callable[[], Any]) -> bool:
            try:
                data = await probe()
            except Exception as e:
                checks.append({"test": name, "status": "FAIL", "error": str(e)})
                return False
            checks.append({"test": name, "status": "PASS", "data": data})
            return True

        async def wallet() -> dict[str, Any]:
            account = self._require_account()
            balance = await self.web3.eth.get_balance(account.address)
            return {"address": account.address, "balance": format_ether(balance), "balance_unit": BALANCE_UNIT}

        async def direct_balance() -> dict[str, Any]:
            balance = await self.web3.eth.get_balance(self.contract_address)
            return {"balance": format_ether(balance), "balance_unit": BALANCE_UNIT}

        async def host() -> dict[str, Any]:
            return {"host_address": await self.contract.functions.host().call()}

        async def contract_balance() -> dict[str, Any]:
            balance = await self.contract.functions.getBalance().call()
            return {"balance": format_ether(balance), "balance_unit": BALANCE_UNIT}

        await check("Provider Connection", self._network)
        await check("Wallet Configuration", wallet)

        deployed = False
        try:
            code = await self._code()
            deployed = bool(code)
            checks.append({
                "test": "Contract Deployment",
                "status": "PASS" if deployed else "FAIL",
                "data": {
                    "address": self.contract_address,
                    "is_deployed": deployed,
                    "code_length": len(Web3.to_hex(code)),
                },
            })
        except Exception as e:
            checks.append({"test": "Contract Deployment", "status": "FAIL", "error": str(e)})

        await check("Contract Balance (Direct)", direct_balance)

        if deployed:
            await check("Contract Function Call (host)", host)
            await check("Contract Function Call (getBalance)", contract_balance)

        return {"timestamp": _now(), "checks": checks}

    async def verify_contract_on_sepolia(self) -> dict[str, Any]:
        """Probe each configured RPC URL in order until one reports the contract's code."""
        checks: list[dict[str, Any]] = []
        timeout = self.settings.etherlink_request_timeout_seconds

        for url in self.settings.etherlink_rpc_urls:
            web3 = self.provider_factory(url)
            try:
                network = await asyncio.wait_for(self._network(web3), timeout)
                code = await asyncio.wait_for(self._code(web3), timeout)
            except Exception as e:
                checks.append({"rpc_url": url, "status": "FAILED", "error": str(e) or type(e).__name__})
                continue

            deployed = bool(code)
            balance = "0.0"
            host = None
            if deployed:
                try:
                    balance = format_ether(await asyncio.wait_for(web3.eth.get_balance(self.contract_address), timeout))
                    probe = web3.eth.contract(address=self.contract_address, abi=CONTRACT_ABI)
                    host = await asyncio.wait_for(probe.functions.host().call(), timeout)
                except Exception as e:
                    logger.warning("etherlink_verify_contract_call_failed", rpc_url=url, error=str(e))

            checks.append({
                "rpc_url": url,
                "status": "SUCCESS",
                "network": network,
                "contract": {
                    "is_deployed": deployed,
                    "code_length": len(Web3.to_hex(code)),
                    "balance": balance,
                    "host_address": host,
                },
            })
            if deployed:
                break

        return {"timestamp": _now(), "contract_address": self.contract_address, "checks": checks}

    async def test_connection(self) -> None:
        """Log network and deployment state; used as a startup diagnostic."""
        try:
            network = await self._network()
            logger.info("etherlink_connected", network=network["name"], chain_id=network["chain_id"])
            if await self._code():
                logger.info("etherlink_contract_found", address=self.contract_address)
            else:
                logger.warning("etherlink_contract_missing", address=self.contract_address)
        except Exception as e:
            logger.error("etherlink_connection_test_failed", error=str(e))


@lru_cache
def get_etherlink_service() -> EtherlinkService:
    """Process-wide service instance (FastAPI dependency)."""
    return EtherlinkService(get_settings())
