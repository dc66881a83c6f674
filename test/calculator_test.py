from common.errors import ChainCallError, NegativeResultWarning
from common.schema import AddressRegistry, TOTAL_SUPPLY, CIRCULATING_SUPPLY
from data_pulling.registry import ZERO_ADDRESS
from supply_calculation.calculator import SupplyCalculator, subtract_or_clamp
from fake_chain import FakeChain, TOKEN, unreachable
import pytest

TREASURY = "0x1000000000000000000000000000000000000001"
TEAM = "0x1000000000000000000000000000000000000002"
POOL_A = "0x2000000000000000000000000000000000000001"
POOL_B = "0x2000000000000000000000000000000000000002"


def registry(name, *addresses):
    return AddressRegistry(name=name, addresses=frozenset(a.lower() for a in addresses))


def make_calculator(chain, excluded=(), pools=(), subtract_burned=False):
    return SupplyCalculator(
        chain=chain,
        excluded=registry("excluded", *excluded),
        pools=registry("pool", *pools),
        decimals=chain.decimals,
        subtract_burned=subtract_burned,
    )


@pytest.fixture
def chain():
    return FakeChain(
        total_supply=1000 * TOKEN,
        balances={TREASURY: 60 * TOKEN, TEAM: 40 * TOKEN},
        pool_locked={POOL_A: 30 * TOKEN, POOL_B: 20 * TOKEN},
    )


async def test_total_supply_subtracts_excluded_balances(chain):
    result = await make_calculator(chain, excluded=[TREASURY, TEAM]).compute_total_supply()
    assert result.metric == TOTAL_SUPPLY
    assert result.amount == 900 * TOKEN
    assert result.formatted == "900"
    assert result.clamped is False
    assert result.warnings == []


async def test_circulating_supply_subtracts_pool_locked(chain):
    result = await make_calculator(chain, excluded=[TREASURY, TEAM], pools=[POOL_A, POOL_B]).compute_circulating_supply()
    assert result.metric == CIRCULATING_SUPPLY
    assert result.amount == 850 * TOKEN
    assert result.formatted == "850"


async def test_empty_registries_return_raw_total(chain):
    calculator = make_calculator(chain)
    total = await calculator.compute_total_supply()
    circulating = await calculator.compute_circulating_supply()
    assert total.amount == circulating.amount == chain.total_supply


async def test_repeated_calls_are_identical(chain):
    calculator = make_calculator(chain, excluded=[TREASURY], pools=[POOL_A])
    first = await calculator.compute_circulating_supply()
    second = await calculator.compute_circulating_supply()
    assert (first.amount, first.block_number, first.warnings) == (second.amount, second.block_number, second.warnings)


async def test_excluded_exceeding_total_is_clamped_with_warning():
    chain = FakeChain(total_supply=100 * TOKEN, balances={TREASURY: 150 * TOKEN})
    with pytest.warns(NegativeResultWarning):
        result = await make_calculator(chain, excluded=[TREASURY]).compute_total_supply()
    assert result.amount == 0
    assert result.formatted == "0"
    assert result.clamped is True
    assert len(result.warnings) == 1


async def test_pool_locked_exceeding_total_is_clamped():
    chain = FakeChain(total_supply=100 * TOKEN, pool_locked={POOL_A: 101 * TOKEN})
    with pytest.warns(NegativeResultWarning):
        result = await make_calculator(chain, pools=[POOL_A]).compute_circulating_supply()
    assert result.amount == 0
    assert result.clamped is True


async def test_clamped_total_propagates_to_circulating():
    chain = FakeChain(total_supply=10, balances={TREASURY: 20}, pool_locked={POOL_A: 5})
    with pytest.warns(NegativeResultWarning):
        result = await make_calculator(chain, excluded=[TREASURY], pools=[POOL_A]).compute_circulating_supply()
    assert result.amount == 0
    assert result.clamped is True
    assert len(result.warnings) == 2


async def test_failed_pool_read_fails_the_computation(chain):
    chain.failures = unreachable(POOL_B)
    calculator = make_calculator(chain, excluded=[TREASURY], pools=[POOL_A, POOL_B])
    with pytest.raises(ChainCallError):
        await calculator.compute_circulating_supply()
    # total supply does not depend on the pool
    assert (await calculator.compute_total_supply()).amount == 940 * TOKEN


async def test_failed_excluded_read_fails_total(chain):
    chain.failures = unreachable(TEAM)
    with pytest.raises(ChainCallError):
        await make_calculator(chain, excluded=[TREASURY, TEAM]).compute_total_supply()


async def test_all_reads_use_one_snapshot_block(chain):
    chain.block = 4242
    result = await make_calculator(chain, excluded=[TREASURY, TEAM], pools=[POOL_A, POOL_B]).compute_circulating_supply()
    assert result.block_number == 4242
    reads = [call for call in chain.calls if call[0] != "blockNumber"]
    assert len(reads) == 5
    assert {block for _, _, block in reads} == {4242}
    assert sum(1 for call in chain.calls if call[0] == "blockNumber") == 1


async def test_explicit_block_skips_block_number_read(chain):
    result = await make_calculator(chain, excluded=[TREASURY]).compute_total_supply(block=7)
    assert result.block_number == 7
    assert all(call[0] != "blockNumber" for call in chain.calls)


async def test_burned_balance_subtracted_when_enabled(chain):
    chain.balances[ZERO_ADDRESS] = 100 * TOKEN
    without = await make_calculator(chain, excluded=[TREASURY]).compute_total_supply()
    with_burn = await make_calculator(chain, excluded=[TREASURY], subtract_burned=True).compute_total_supply()
    assert without.amount == 940 * TOKEN
    assert with_burn.amount == 840 * TOKEN


async def test_compute_dispatches_by_metric(chain):
    calculator = make_calculator(chain, pools=[POOL_A])
    assert (await calculator.compute(TOTAL_SUPPLY)).amount == 1000 * TOKEN
    assert (await calculator.compute(CIRCULATING_SUPPLY)).amount == 970 * TOKEN
    with pytest.raises(ValueError):
        await calculator.compute("market_cap")


def test_subtract_or_clamp():
    warning_list = []
    assert subtract_or_clamp(10, 10, "exact", warning_list) == 0
    assert warning_list == []
    with pytest.warns(NegativeResultWarning, match="underflow"):
        assert subtract_or_clamp(10, 11, "underflow", warning_list) == 0
    assert len(warning_list) == 1
