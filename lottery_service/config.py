from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional

from dotenv import load_dotenv


@dataclass(frozen=True)
class FlaskSettings:
    secret_key: str = "lottery-dev-secret"
    debug: bool = True


@dataclass(frozen=True)
class RoundSettings:
    admin_address: str
    ticket_price: int = 10
    round_account: str = "lottery-round"
    selector_seed: Optional[int] = None


@dataclass(frozen=True)
class Web3Settings:
    rpc_url: Optional[str] = None
    contract_address: Optional[str] = None
    abi_path: str = "build/contracts/Lottery.json"
    signer_key: Optional[str] = None

    @property
    def enabled(self) -> bool:
        return bool(self.rpc_url and self.contract_address)


@dataclass(frozen=True)
class AppSettings:
    flask: FlaskSettings
    round: RoundSettings
    web3: Web3Settings
    database_url: str
    admin_api_key: Optional[str]


def _require(key: str) -> str:
    value = os.getenv(key)
    if not value:
        raise RuntimeError(f"Missing required environment variable: {key}")
    return value


def _int_from_env(key: str, default: Optional[int]) -> Optional[int]:
    value = os.getenv(key)
    if value is None or value == "":
        return default
    try:
        return int(value)
    except ValueError as exc:
        raise RuntimeError(f"Environment variable {key} must be an integer, got {value!r}") from exc


def _web3_from_env() -> Web3Settings:
    return Web3Settings(
        rpc_url=os.getenv("RPC_URL") or None,
        contract_address=os.getenv("LOTTERY_CONTRACT_ADDRESS") or None,
        abi_path=os.getenv("LOTTERY_ABI_PATH", "build/contracts/Lottery.json"),
        signer_key=os.getenv("LOTTERY_SIGNER_KEY") or None,
    )


def _load_env(dotenv_path: Optional[str]) -> None:
    if dotenv_path:
        load_dotenv(dotenv_path)
    else:
        load_dotenv()


def load_web3_settings(dotenv_path: Optional[str] = None) -> Web3Settings:
    """Contract settings only; usable without the HTTP service's round settings."""
    _load_env(dotenv_path)
    return _web3_from_env()


@lru_cache(maxsize=1)
def load_settings(dotenv_path: Optional[str] = None) -> AppSettings:
    _load_env(dotenv_path)

    flask_settings = FlaskSettings(
        secret_key=os.getenv("FLASK_SECRET_KEY", "lottery-dev-secret"),
        debug=os.getenv("FLASK_DEBUG", "1") == "1",
    )

    ticket_price = _int_from_env("LOTTERY_TICKET_PRICE", 10)
    if ticket_price is None or ticket_price <= 0:
        raise RuntimeError("LOTTERY_TICKET_PRICE must be a positive integer")

    round_settings = RoundSettings(
        admin_address=_require("LOTTERY_ADMIN_ADDRESS"),
        ticket_price=ticket_price,
        round_account=os.getenv("LOTTERY_ROUND_ACCOUNT", "lottery-round"),
        selector_seed=_int_from_env("LOTTERY_SELECTOR_SEED", None),
    )

    web3_settings = _web3_from_env()

    database_url = os.getenv("DATABASE_URL", "sqlite:///lottery.db")
    admin_api_key = os.getenv("ADMIN_API_KEY")

    return AppSettings(
        flask=flask_settings,
        round=round_settings,
        web3=web3_settings,
        database_url=database_url,
        admin_api_key=admin_api_key,
    )
