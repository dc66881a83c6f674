from pydantic import BaseModel, ConfigDict, Field, computed_field
from typing import Literal
from datetime import datetime, timezone

from supply_calculation.formatter import format_token_amount

TOTAL_SUPPLY = "total_supply"
CIRCULATING_SUPPLY = "circulating_supply"
Metric = Literal["total_supply", "circulating_supply"]


class AddressRegistry(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    addresses: frozenset[str] = frozenset()  # lower-cased, 0x-prefixed

    def __contains__(self, address: str) -> bool:
        return address.lower() in self.addresses

    def __len__(self) -> int:
        return len(self.addresses)

    def sorted(self) -> list[str]:
        return sorted(self.addresses)


class PoolVestingData(BaseModel):
    # staking pool 컨트랙트에서 읽어오는 vesting 파라미터. 모두 uint256.
    initial: int = Field(..., ge=0)
    pool_creation: int = Field(..., ge=0)
    blocks_per_day: int = Field(..., ge=0)
    lock_days: int = Field(..., ge=0, description="Initial lock period, in blocks")
    vesting_days: int = Field(..., ge=0, description="Vesting duration, in blocks")
    ratio_precision: int = Field(..., ge=0)


class PoolCalculation(BaseModel):
    initial: int
    ratio_precision: int
    locked_amount: int = Field(..., ge=0)
    days_passed: int
    days_until_lock_ends: int
    days_until_vesting_ends: int
    unlocked_fraction: int


class SupplyResult(BaseModel):
    metric: Metric
    amount: int = Field(..., ge=0, description="Token base units")
    decimals: int = Field(..., ge=0, le=255)
    clamped: bool = False
    warnings: list[str] = []
    block_number: int | None = None
    computed_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @computed_field
    @property
    def formatted(self) -> str:
        return format_token_amount(self.amount, self.decimals)
