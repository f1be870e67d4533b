from __future__ import annotations

import asyncio
import json
import math
from pathlib import Path
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from web3.exceptions import BadFunctionCallOutput, ContractLogicError

from lottery.errors import REVERT_REASONS, LotteryError
from lottery.types import RoundSnapshot, RoundStatus

from ..config import Web3Settings

if TYPE_CHECKING:  # pragma: no cover
    from web3 import Web3
    from web3.contract import Contract

# Upper bound on entrants(i) reads when listing the public array.
MAX_ENTRANTS_SCAN = 10_000


def _ensure_event_loop() -> None:
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        loop = asyncio.new_event_loop()
        asyncio.set_event_loop(loop)


def translate_revert(exc: ContractLogicError) -> Exception:
    """Map a contract revert onto the matching ``LotteryError``.

    Unknown reasons are returned unchanged so the caller can re-raise them.
    """
    text = " ".join(str(part) for part in (getattr(exc, "message", None), exc) if part)
    for reason, error_cls in REVERT_REASONS.items():
        if reason in text:
            return error_cls()
    return exc


class LotteryContractClient:
    """Wrapper around web3 interactions with the deployed Lottery contract."""

    def __init__(self, web3: "Web3", contract: "Contract", signer_key: Optional[str] = None) -> None:
        self._web3 = web3
        self._contract = contract
        self._address = contract.address
        self._account = web3.eth.account.from_key(signer_key) if signer_key else None

    @classmethod
    def from_artifact(
        cls,
        rpc_url: str,
        contract_address: str,
        artifact_path: str,
        signer_key: Optional[str] = None,
    ) -> "LotteryContractClient":
        _ensure_event_loop()
        from web3 import Web3
        from web3.middleware import ExtraDataToPOAMiddleware

        artifact = cls._load_artifact(artifact_path)
        abi = artifact.get("abi")
        if abi is None:
            raise ValueError(f"ABI not found in artifact: {artifact_path}")

        web3 = Web3(Web3.HTTPProvider(rpc_url))
        if not web3.is_connected():
            raise ConnectionError(f"Cannot connect to RPC endpoint: {rpc_url}")

        # Ganache and PoA testnets put extra bytes in the block header.
        web3.middleware_onion.inject(ExtraDataToPOAMiddleware, layer=0)

        contract = web3.eth.contract(address=Web3.to_checksum_address(contract_address), abi=abi)
        return cls(web3, contract, signer_key=signer_key)

    @classmethod
    def from_settings(cls, settings: Web3Settings) -> "LotteryContractClient":
        if not settings.enabled:
            raise RuntimeError("Contract access disabled; set RPC_URL and LOTTERY_CONTRACT_ADDRESS")
        return cls.from_artifact(
            settings.rpc_url,
            settings.contract_address,
            settings.abi_path,
            signer_key=settings.signer_key,
        )

    @staticmethod
    def _load_artifact(path: str) -> Dict[str, Any]:
        artifact_path = Path(path)
        if not artifact_path.exists():
            raise FileNotFoundError(f"Contract artifact not found: {artifact_path}")
        with artifact_path.open("r", encoding="utf-8") as fh:
            return json.load(fh)

    @property
    def address(self) -> str:
        return self._address

    @property
    def signer_address(self) -> Optional[str]:
        return self._account.address if self._account is not None else None

    @property
    def chain_id(self) -> Optional[int]:
        try:
            return int(self._web3.eth.chain_id)
        except Exception:  # pragma: no cover - node unreachable
            return None

    async def get_admin(self) -> str:
        return await asyncio.to_thread(self._contract.functions.admin().call)

    async def get_ticket_price(self) -> int:
        value = await asyncio.to_thread(self._contract.functions.ticketPrice().call)
        return int(value)

    async def is_drawing(self) -> bool:
        value = await asyncio.to_thread(self._contract.functions.drawing().call)
        return bool(value)

    async def get_entrant(self, index: int) -> str:
        return await asyncio.to_thread(self._contract.functions.entrants(int(index)).call)

    async def get_entrants(self) -> List[str]:
        return await asyncio.to_thread(self._get_entrants_sync)

    async def get_balance(self) -> int:
        value = await asyncio.to_thread(self._web3.eth.get_balance, self._address)
        return int(value)

    async def get_snapshot(self) -> RoundSnapshot:
        admin, ticket_price, drawing, entrants, balance = await asyncio.gather(
            self.get_admin(),
            self.get_ticket_price(),
            self.is_drawing(),
            self.get_entrants(),
            self.get_balance(),
        )
        return RoundSnapshot(
            admin=admin,
            ticket_price=ticket_price,
            drawing=drawing,
            status=RoundStatus.OPEN if drawing else RoundStatus.SETTLED,
            entrants=tuple(entrants),
            balance=balance,
        )

    async def enter_lottery(self, value: Optional[int] = None) -> str:
        return await asyncio.to_thread(self._enter_lottery_sync, value)

    async def decide_winner(self) -> str:
        return await asyncio.to_thread(self._decide_winner_sync)

    # --------------------------------------------------------------------- #
    # Internal helpers
    # --------------------------------------------------------------------- #

    def _ensure_account(self):
        if self._account is None:
            raise RuntimeError("Contract signer not configured; set LOTTERY_SIGNER_KEY in .env")
        return self._account

    def _get_entrants_sync(self) -> List[str]:
        entrants: List[str] = []
        for index in range(MAX_ENTRANTS_SCAN):
            try:
                entrants.append(self._contract.functions.entrants(index).call())
            except (ContractLogicError, BadFunctionCallOutput):
                break
        return entrants

    def _enter_lottery_sync(self, value: Optional[int]) -> str:
        account = self._ensure_account()
        if value is None:
            value = int(self._contract.functions.ticketPrice().call())
        fn = self._contract.functions.enterLottery()
        tx_meta = self._send_transaction(fn, {"from": account.address, "value": int(value)})
        return tx_meta["tx_hash"]

    def _decide_winner_sync(self) -> str:
        account = self._ensure_account()
        fn = self._contract.functions.decideWinner()
        tx_meta = self._send_transaction(fn, {"from": account.address})
        return tx_meta["tx_hash"]

    def _send_transaction(self, fn, tx_params: Dict[str, Any]) -> Dict[str, Any]:
        account = self._ensure_account()
        tx_params = dict(tx_params)
        tx_params.setdefault("from", account.address)

        try:
            gas_estimate = fn.estimate_gas(tx_params)
        except ContractLogicError as exc:
            error = translate_revert(exc)
            if isinstance(error, LotteryError):
                raise error from exc
            raise

        gas_limit = max(int(math.ceil(gas_estimate * 1.2)), 100000)
        nonce = self._web3.eth.get_transaction_count(account.address)

        tx = fn.build_transaction(
            {
                **tx_params,
                "nonce": nonce,
                "gas": gas_limit,
                "gasPrice": self._web3.eth.gas_price,
            }
        )

        chain_id = self.chain_id
        if chain_id is not None:
            tx["chainId"] = chain_id

        signed = account.sign_transaction(tx)
        tx_hash = self._web3.eth.send_raw_transaction(signed.raw_transaction)
        receipt = self._web3.eth.wait_for_transaction_receipt(tx_hash, timeout=180, poll_latency=2)
        if receipt["status"] != 1:
            raise RuntimeError(f"Transaction reverted: {tx_hash.hex()}")

        return {"tx_hash": tx_hash.hex(), "receipt": receipt}
