"""
Runtime configuration.

All settings come from environment variables; a `.env` file at the project
root is loaded first so local development does not need exported variables.

Environment variables:
- SUPABASE_URL / SUPABASE_KEY: Supabase project URL and API key
- COUPONS_TABLE / TRANSACTIONS_TABLE / USERS_TABLE: collection table names
- COMMIT_RPC: name of the atomic commit function (see sql/document_store.sql)
- TRANSACTION_MAX_ATTEMPTS: optimistic retry budget for one atomic unit
- DEFAULT_COUPON_NAME / DEFAULT_COUPON_VALUE: placeholders for purchase records
- UNKNOWN_SELLER_ID / UNKNOWN_SELLER_EMAIL: placeholders for missing seller fields
- COUPON_TIMEZONE: IANA zone used for expiry dates and day truncation
- LOG_LEVEL: logging level for the API process
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from decimal import Decimal
from functools import lru_cache
from pathlib import Path
from zoneinfo import ZoneInfo

from dotenv import load_dotenv

from domain.transaction import PurchaseDefaults

env_path = Path(__file__).parent.parent / ".env"
load_dotenv(dotenv_path=env_path)


@dataclass(frozen=True, slots=True)
class Settings:
    supabase_url: str | None = None
    supabase_key: str | None = None
    coupons_table: str = "coupons"
    transactions_table: str = "transactions"
    users_table: str = "users"
    commit_rpc: str = "commit_document_writes"
    transaction_max_attempts: int = 5
    purchase_defaults: PurchaseDefaults = field(default_factory=PurchaseDefaults)
    coupon_timezone: str = "UTC"
    log_level: str = "INFO"

    @property
    def tz(self) -> ZoneInfo:
        return ZoneInfo(self.coupon_timezone)


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        value = int(raw)
    except ValueError:
        raise RuntimeError(f"Environment variable {name} must be an integer, got {raw!r}") from None
    if value < 1:
        raise RuntimeError(f"Environment variable {name} must be >= 1")
    return value


def load_settings() -> Settings:
    """Read settings from the environment (no caching)."""

    base = PurchaseDefaults()
    raw_value = os.getenv("DEFAULT_COUPON_VALUE")
    try:
        default_value = Decimal(raw_value) if raw_value else base.coupon_value
    except ArithmeticError:
        raise RuntimeError(
            f"Environment variable DEFAULT_COUPON_VALUE must be numeric, got {raw_value!r}"
        ) from None

    return Settings(
        supabase_url=os.getenv("SUPABASE_URL"),
        supabase_key=os.getenv("SUPABASE_KEY"),
        coupons_table=os.getenv("COUPONS_TABLE", "coupons"),
        transactions_table=os.getenv("TRANSACTIONS_TABLE", "transactions"),
        users_table=os.getenv("USERS_TABLE", "users"),
        commit_rpc=os.getenv("COMMIT_RPC", "commit_document_writes"),
        transaction_max_attempts=_int_env("TRANSACTION_MAX_ATTEMPTS", 5),
        purchase_defaults=PurchaseDefaults(
            coupon_name=os.getenv("DEFAULT_COUPON_NAME", base.coupon_name),
            coupon_value=default_value,
            seller_id=os.getenv("UNKNOWN_SELLER_ID", base.seller_id),
            seller_email=os.getenv("UNKNOWN_SELLER_EMAIL", base.seller_email),
        ),
        coupon_timezone=os.getenv("COUPON_TIMEZONE", "UTC"),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return load_settings()


__all__ = ["Settings", "load_settings", "get_settings"]
