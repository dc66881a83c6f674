from common.errors import NegativeResultWarning
from common.schema import AddressRegistry, SupplyResult, TOTAL_SUPPLY, CIRCULATING_SUPPLY
from data_pulling.registry import ZERO_ADDRESS
from typing import Iterable, Protocol
import asyncio, logging, warnings

logger = logging.getLogger("TokenSupply.Calculation")
logger.setLevel(logging.DEBUG)


class SupplyChain(Protocol):
    # ChainClient와 테스트용 FakeChain이 공통으로 만족하는 인터페이스
    async def get_block_number(self) -> int: ...
    async def get_total_supply(self, block_identifier: int | None = None) -> int: ...
    async def get_balance(self, address: str, block_identifier: int | None = None) -> int: ...
    async def get_pool_staked_balance(self, pool_address: str, block_identifier: int | None = None) -> int: ...
    async def get_decimals(self) -> int: ...


def subtract_or_clamp(minuend: int, subtrahend: int, label: str, warning_list: list[str]) -> int:
    if subtrahend <= minuend:
        return minuend - subtrahend
    message = f"{label}: {subtrahend} exceeds {minuend}, result clamped to 0"
    logger.warning(message)
    warnings.warn(message, NegativeResultWarning, stacklevel=2)
    warning_list.append(message)
    return 0


class SupplyCalculator:
    """Combines chain reads with the address registries into the two published metrics.

    total supply       = totalSupply() - sum(balanceOf(excluded)) [- balanceOf(0x0)]
    circulating supply = total supply - sum(locked amount of each pool)

    All reads of one computation are pinned to the same block. Per-address
    reads run concurrently and any failure fails the whole computation.
    """

    def __init__(
        self,
        chain: SupplyChain,
        excluded: AddressRegistry,
        pools: AddressRegistry,
        decimals: int,
        subtract_burned: bool = False,
    ):
        self.chain = chain
        self.excluded = excluded
        self.pools = pools
        self.decimals = decimals
        self.subtract_burned = subtract_burned

    async def _sum_balances(self, addresses: Iterable[str], block: int) -> int:
        balances = await asyncio.gather(
            *(self.chain.get_balance(address, block_identifier=block) for address in addresses)
        )
        return sum(balances)

    async def _sum_pool_locked(self, block: int) -> int:
        locked = await asyncio.gather(
            *(self.chain.get_pool_staked_balance(pool, block_identifier=block) for pool in self.pools.sorted())
        )
        return sum(locked)

    async def _snapshot_block(self, block: int | None) -> int:
        if block is None:
            block = await self.chain.get_block_number()
        return block

    async def compute_total_supply(self, block: int | None = None) -> SupplyResult:
        block = await self._snapshot_block(block)
        burned_addresses = [ZERO_ADDRESS] if self.subtract_burned else []

        raw_total, excluded_sum, burned_sum = await asyncio.gather(
            self.chain.get_total_supply(block_identifier=block),
            self._sum_balances(self.excluded.sorted(), block),
            self._sum_balances(burned_addresses, block),
        )
        logger.debug(f"Block {block}: raw total={raw_total}, excluded={excluded_sum}, burned={burned_sum}")

        warning_list: list[str] = []
        amount = subtract_or_clamp(raw_total, excluded_sum, "total supply - excluded balances", warning_list)
        amount = subtract_or_clamp(amount, burned_sum, "total supply - burned balance", warning_list)

        return SupplyResult(
            metric=TOTAL_SUPPLY,
            amount=amount,
            decimals=self.decimals,
            clamped=bool(warning_list),
            warnings=warning_list,
            block_number=block,
        )

    async def compute_circulating_supply(self, block: int | None = None) -> SupplyResult:
        block = await self._snapshot_block(block)
        total, pool_locked = await asyncio.gather(
            self.compute_total_supply(block=block),
            self._sum_pool_locked(block),
        )
        logger.debug(f"Block {block}: total={total.amount}, pool locked={pool_locked}")

        warning_list = list(total.warnings)
        amount = subtract_or_clamp(total.amount, pool_locked, "circulating supply - pool locked balances", warning_list)

        return SupplyResult(
            metric=CIRCULATING_SUPPLY,
            amount=amount,
            decimals=self.decimals,
            clamped=bool(warning_list),
            warnings=warning_list,
            block_number=block,
        )

    async def compute(self, metric: str, block: int | None = None) -> SupplyResult:
        if metric == TOTAL_SUPPLY:
            return await self.compute_total_supply(block=block)
        if metric == CIRCULATING_SUPPLY:
            return await self.compute_circulating_supply(block=block)
        raise ValueError(f"Unsupported metric: {metric}")
