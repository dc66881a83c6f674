from common.schema import PoolCalculation, PoolVestingData


def calculate_pool_vesting(
    initial: int,
    pool_creation: int,
    blocks_per_day: int,
    lock_days: int,
    vesting_days: int,
    ratio_precision: int,
    current_block: int,
) -> PoolCalculation:
    """Amount of a pool's initial self-stake that is still locked at `current_block`.

    Lock and vesting periods are stored on-chain in blocks and converted to
    whole days with `blocks_per_day`. Nothing unlocks until the lock period
    has passed; afterwards the stake unlocks linearly over the vesting period
    with `ratio_precision` as the fixed-point scale.
    """
    blocks_passed = max(current_block - pool_creation, 0)

    if blocks_per_day > 0:
        days_passed = blocks_passed // blocks_per_day
        lock_period = lock_days // blocks_per_day
        vesting_period = vesting_days // blocks_per_day
    else:
        days_passed = lock_period = vesting_period = 0

    days_until_lock_ends = max(lock_period - days_passed, 0)
    days_until_vesting_ends = max(lock_period + vesting_period - days_passed, 0)

    if days_passed <= lock_period:
        unlocked_fraction = 0
    elif vesting_period > 0:
        vesting_progress = days_passed - lock_period
        unlocked_fraction = min(vesting_progress * ratio_precision // vesting_period, ratio_precision)
    else:
        unlocked_fraction = 0

    unlocked = initial * unlocked_fraction // ratio_precision if ratio_precision > 0 else 0
    locked = max(initial - unlocked, 0)

    return PoolCalculation(
        initial=initial,
        ratio_precision=ratio_precision,
        locked_amount=locked,
        days_passed=days_passed,
        days_until_lock_ends=days_until_lock_ends,
        days_until_vesting_ends=days_until_vesting_ends,
        unlocked_fraction=unlocked_fraction,
    )


def locked_amount(data: PoolVestingData, current_block: int) -> int:
    return calculate_pool_vesting(current_block=current_block, **data.model_dump()).locked_amount
