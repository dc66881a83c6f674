from common.errors import AbiDecodeError, ChainCallError
from common.schema import PoolVestingData
from data_pulling.registry import POOL_VESTING_FUNCTIONS
from supply_calculation.vesting import locked_amount
from web3 import AsyncWeb3
from web3.exceptions import BadFunctionCallOutput, MismatchedABI
from eth_abi.exceptions import DecodingError
from pathlib import Path
from typing import Awaitable, Callable
import asyncio, logging, yaml

logger = logging.getLogger("TokenSupply.Onchain")
logger.setLevel(logging.DEBUG)

BASE_DIR = Path(__file__).resolve().parent
with open(BASE_DIR / "ABI.yaml", "r") as f:
    ABI_dict: dict = yaml.full_load(f)
ERC20_ABI: list = ABI_dict["ERC20"]

# 응답 자체가 ABI와 맞지 않는 경우. 설정 문제이므로 재시도하지 않음.
DECODE_ERRORS = (BadFunctionCallOutput, DecodingError, MismatchedABI)


def _as_uint(label: str, value, bits: int = 256) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or not 0 <= value < 2 ** bits:
        raise AbiDecodeError(f"{label} returned {value!r}, expected uint{bits}")
    return value


class ChainClient:
    """Read-only access to one token contract (and its staking pools) on one EVM chain.

    Every call is bounded by `timeout` seconds. Transport failures, timeouts and
    reverts are retried `max_retries` times with exponential backoff before a
    ChainCallError is raised. Responses that do not decode against the ABI
    raise AbiDecodeError immediately.
    """

    def __init__(
        self,
        rpc_url: str,
        token_address: str,
        pool_abi: list[dict],
        timeout: float = 10.0,
        max_retries: int = 3,
        backoff_base: float = 0.5,
    ):
        self.timeout = timeout
        self.max_retries = max_retries
        self.backoff_base = backoff_base
        self.pool_abi = pool_abi
        self.w3 = AsyncWeb3(AsyncWeb3.AsyncHTTPProvider(rpc_url))
        self.token_contract = self.w3.eth.contract(
            address=AsyncWeb3.to_checksum_address(token_address),
            abi=ERC20_ABI,
        )
        self._decimals: int | None = None

    async def _call(self, label: str, call_factory: Callable[[], Awaitable]):
        # coroutine은 재사용할 수 없으므로 매 시도마다 factory로 새로 생성.
        attempt = 0
        while True:
            try:
                return await asyncio.wait_for(call_factory(), timeout=self.timeout)
            except DECODE_ERRORS as e:
                logger.error(f"{label}: response does not match the contract interface: {e}")
                raise AbiDecodeError(f"{label}: {e}") from e
            except Exception as e:
                attempt += 1
                if attempt > self.max_retries:
                    logger.error(f"{label} failed after {attempt} attempts: {e!r}")
                    raise ChainCallError(f"{label} failed after {attempt} attempts: {e!r}") from e
                wait_time = self.backoff_base * 2 ** (attempt - 1)
                logger.warning(f"{label} failed ({e!r}), retry {attempt}/{self.max_retries} in {wait_time:.2f}s")
                await asyncio.sleep(wait_time)

    async def get_block_number(self) -> int:
        block = await self._call("eth_blockNumber", lambda: self.w3.eth.get_block_number())
        return _as_uint("eth_blockNumber", block, bits=64)

    async def get_total_supply(self, block_identifier: int | None = None) -> int:
        value = await self._call(
            "totalSupply()",
            lambda: self.token_contract.functions.totalSupply().call(block_identifier=block_identifier),
        )
        return _as_uint("totalSupply()", value)

    async def get_balance(self, address: str, block_identifier: int | None = None) -> int:
        checksum = AsyncWeb3.to_checksum_address(address)
        label = f"balanceOf({address})"
        value = await self._call(
            label,
            lambda: self.token_contract.functions.balanceOf(checksum).call(block_identifier=block_identifier),
        )
        return _as_uint(label, value)

    async def get_decimals(self) -> int:
        if self._decimals is None:
            value = await self._call("decimals()", lambda: self.token_contract.functions.decimals().call())
            self._decimals = _as_uint("decimals()", value, bits=8)
            logger.info(f"Token decimals: {self._decimals}")
        return self._decimals

    async def get_pool_vesting_data(self, pool_address: str, block_identifier: int | None = None) -> PoolVestingData:
        pool = self.w3.eth.contract(address=AsyncWeb3.to_checksum_address(pool_address), abi=self.pool_abi)

        def read(function_name: str):
            label = f"{pool_address}.{function_name}()"
            return self._call(
                label,
                lambda: getattr(pool.functions, function_name)().call(block_identifier=block_identifier),
            )

        fields = list(POOL_VESTING_FUNCTIONS.keys())
        values = await asyncio.gather(*(read(POOL_VESTING_FUNCTIONS[field]) for field in fields))
        decoded = {
            field: _as_uint(f"{pool_address}.{POOL_VESTING_FUNCTIONS[field]}()", value)
            for field, value in zip(fields, values)
        }
        return PoolVestingData(**decoded)

    async def get_pool_staked_balance(self, pool_address: str, block_identifier: int | None = None) -> int:
        if block_identifier is None:
            block_identifier = await self.get_block_number()
        data = await self.get_pool_vesting_data(pool_address, block_identifier=block_identifier)
        locked = locked_amount(data, current_block=block_identifier)
        logger.debug(f"Pool {pool_address}: initial={data.initial}, locked={locked} at block {block_identifier}")
        return locked

    async def close(self):
        await self.w3.provider.disconnect()
