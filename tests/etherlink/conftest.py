"""In-memory web3 doubles for the etherlink service."""

from __future__ import annotations

from types import SimpleNamespace
from typing import Any

import pytest
from web3 import Web3

from eventhub.config import Settings
from eventhub.etherlink.service import EtherlinkService

CONTRACT = Web3.to_checksum_address("0xa598c474afc51890b85eadeb3d49fb2fb62a1851")
WALLET = "0x" + "22" * 20
RECIPIENT = "0x" + "11" * 20
HOST = "0x" + "33" * 20
TX_HASH = bytes.fromhex("ab" * 32)
WEI = 10**18


async def _resolve(value: Any) -> Any:
    if isinstance(value, Exception):
        raise value
    return value


class FakeCall:
    def __init__(self, contract: FakeContract, name: str, args: tuple) -> None:
        self.contract = contract
        self.name = name
        self.args = args

    async def call(self) -> Any:
        return await _resolve(self.contract.results.get(self.name))

    async def build_transaction(self, params: dict[str, Any]) -> dict[str, Any]:
        tx = {**params, "to": self.contract.address, "function": self.name, "args": self.args}
        self.contract.built.append(tx)
        return tx


class FakeFunctions:
    def __init__(self, contract: FakeContract) -> None:
        self._contract = contract

    def __getattr__(self, name: str):
        return lambda *args: FakeCall(self._contract, name, args)


class FakeContract:
    def __init__(self, address: str) -> None:
        self.address = address
        self.results: dict[str, Any] = {"getBalance": 2 * WEI, "host": HOST}
        self.built: list[dict[str, Any]] = []
        self.functions = FakeFunctions(self)


class FakeEth:
    """Provider surface used by the service; set attributes to Exceptions to make calls fail."""

    def __init__(self, chain: Any = 11155111) -> None:
        self.chain = chain
        self.code: Any = b"\x60\x80\x60\x40"
        self.balances: dict[str, Any] = {CONTRACT: 2 * WEI, WALLET: 5 * WEI}
        self.receipt: Any = {"status": 1, "blockNumber": 123, "gasUsed": 21000}
        self.sent: list[bytes] = []
        self.nonce_requests: list[tuple[str, str]] = []
        self.contracts: list[FakeContract] = []

    @property
    def chain_id(self):
        return _resolve(self.chain)

    async def get_code(self, address: str) -> Any:
        return await _resolve(self.code)

    async def get_balance(self, address: str) -> Any:
        return await _resolve(self.balances.get(address, 0))

    async def get_transaction_count(self, address: str, block: str) -> int:
        self.nonce_requests.append((address, block))
        return 7

    async def send_raw_transaction(self, raw: bytes) -> bytes:
        self.sent.append(raw)
        return TX_HASH

    async def wait_for_transaction_receipt(self, tx_hash: bytes, timeout: int) -> Any:
        return await _resolve(self.receipt)

    def contract(self, address: str, abi: list) -> FakeContract:
        contract = FakeContract(address)
        self.contracts.append(contract)
        return contract


class FakeWeb3:
    def __init__(self, eth: FakeEth | None = None) -> None:
        self.eth = eth or FakeEth()


class FakeAccount:
    def __init__(self, address: str = WALLET) -> None:
        self.address = address
        self.signed: list[dict[str, Any]] = []

    def sign_transaction(self, tx: dict[str, Any]) -> SimpleNamespace:
        self.signed.append(tx)
        return SimpleNamespace(raw_transaction=b"signed-tx")


def make_settings(**overrides: Any) -> Settings:
    values: dict[str, Any] = {
        "etherlink_contract_address": CONTRACT,
        "etherlink_private_key": "",
        "etherlink_rpc_urls": ["https://rpc-a.test", "https://rpc-b.test"],
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


@pytest.fixture
def web3() -> FakeWeb3:
    return FakeWeb3()


@pytest.fixture
def account() -> FakeAccount:
    return FakeAccount()


@pytest.fixture
def service(web3: FakeWeb3, account: FakeAccount) -> EtherlinkService:
    return EtherlinkService(make_settings(), web3=web3, account=account)


@pytest.fixture
def contract(service: EtherlinkService) -> FakeContract:
    return service.contract
