from common.errors import AbiDecodeError, ChainCallError, ConfigLoadError
from common.schema import SupplyResult
from common.settings import CHAIN, RPC, SUPPLY, SLACK_WEBHOOK_URL
from data_pulling.onchain.evm import ChainClient
from data_pulling.registry import load_address_registry, load_pool_interface, normalize_address, validate_registries
from supply_calculation.calculator import SupplyCalculator
from supply_calculation.cache import SupplyCache
from summary.alarm import alarm_negative_result
from pydantic import BaseModel, ConfigDict
import logging

logger = logging.getLogger("TokenSupply.Tools")
logger.setLevel(logging.DEBUG)


class SupplyState(BaseModel):
    # 서버 시작 시 한 번 만들어지고 이후 변경되지 않는 프로세스 전역 상태. handler에 주입됨.
    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

    calculator: SupplyCalculator
    cache: SupplyCache
    slack_webhook_url: str | None = None

    async def close(self):
        close = getattr(self.calculator.chain, "close", None)
        if close is not None:
            await close()


async def build_state() -> SupplyState:
    """Load registries, connect to the chain and read decimals. Raises ConfigLoadError on bad config."""
    if not CHAIN.RPC_URL or not CHAIN.TOKEN_ADDRESS:
        raise ConfigLoadError("RPC_URL and TOKEN_ADDRESS must be set")

    excluded = load_address_registry(SUPPLY.EXCLUDED_ADDRESSES_PATH, "excluded")
    pools = load_address_registry(SUPPLY.POOL_ADDRESSES_PATH, "pool")
    validate_registries(excluded, pools)
    pool_abi = load_pool_interface(SUPPLY.POOL_INTERFACE_PATH)

    chain = ChainClient(
        rpc_url=CHAIN.RPC_URL,
        token_address=normalize_address(CHAIN.TOKEN_ADDRESS),
        pool_abi=pool_abi,
        timeout=RPC.TIMEOUT,
        max_retries=RPC.MAX_RETRIES,
        backoff_base=RPC.BACKOFF_BASE,
    )
    decimals = SUPPLY.DECIMALS if SUPPLY.DECIMALS is not None else await chain.get_decimals()
    logger.info(
        f"Token {CHAIN.TOKEN_ADDRESS}: decimals={decimals}, "
        f"{len(excluded)} excluded addresses, {len(pools)} pools"
    )

    return SupplyState(
        calculator=SupplyCalculator(
            chain=chain,
            excluded=excluded,
            pools=pools,
            decimals=decimals,
            subtract_burned=SUPPLY.SUBTRACT_BURNED,
        ),
        cache=SupplyCache(ttl_seconds=SUPPLY.CACHE_TTL),
        slack_webhook_url=SLACK_WEBHOOK_URL,
    )


async def get_supply(state: SupplyState, metric: str) -> SupplyResult:
    async def compute() -> SupplyResult:
        result = await state.calculator.compute(metric)
        if result.clamped:
            await alarm_negative_result(result, state.slack_webhook_url)
        logger.info(f"{metric} at block {result.block_number}: {result.formatted}")
        return result

    return await state.cache.get_or_compute(metric, compute)


def error_status(exc: Exception) -> int:
    if isinstance(exc, ChainCallError):
        return 502
    if isinstance(exc, AbiDecodeError):
        return 503
    return 500
