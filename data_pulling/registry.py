# Address lists and staking pool interface, loaded once at startup.
from common.errors import ConfigLoadError
from common.schema import AddressRegistry
from pathlib import Path
import json, logging, re

logger = logging.getLogger("TokenSupply.Registry")
logger.setLevel(logging.DEBUG)

ADDRESS_PATTERN = re.compile(r"^0x[0-9a-fA-F]{40}$")
ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"

# staking pool에서 locked amount 계산에 필요한 view 함수들 (PoolVestingData field -> ABI function name)
POOL_VESTING_FUNCTIONS: dict[str, str] = {
    "initial": "initialSelfStakeAmount",
    "pool_creation": "poolCreation",
    "blocks_per_day": "blocksPerDay",
    "lock_days": "initialLockPeriod",
    "vesting_days": "vestingDuration",
    "ratio_precision": "RATIO_PRECISION",
}


def normalize_address(value) -> str:
    # 컨트랙트 주소는 대소문자 구분을 하지 않지만 파이썬 문자열은 구분하므로 lower() 처리.
    if not isinstance(value, str):
        raise ConfigLoadError(f"Address must be a string, got {type(value).__name__}: {value!r}")
    address = value.strip()
    if not ADDRESS_PATTERN.match(address):
        raise ConfigLoadError(f"Malformed address: {value!r}")
    return address.lower()


def _read_json(path: Path, what: str):
    path = Path(path)
    try:
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f)
    except FileNotFoundError as e:
        raise ConfigLoadError(f"{what} file not found: {path}") from e
    except json.JSONDecodeError as e:
        raise ConfigLoadError(f"{what} file is not valid JSON: {path} ({e})") from e
    except OSError as e:
        raise ConfigLoadError(f"{what} file could not be read: {path} ({e})") from e


def load_address_registry(path: Path, name: str) -> AddressRegistry:
    raw = _read_json(path, f"{name} address list")
    if not isinstance(raw, list):
        raise ConfigLoadError(f"{name} address list must be a JSON array: {path}")

    addresses = set()
    for entry in raw:
        address = normalize_address(entry)
        if address in addresses:
            logger.warning(f"Duplicate address {address} in {name} list ({path}), ignored")
        addresses.add(address)

    logger.info(f"Loaded {len(addresses)} {name} addresses from {path}")
    return AddressRegistry(name=name, addresses=frozenset(addresses))


def validate_registries(excluded: AddressRegistry, pools: AddressRegistry) -> None:
    """Pool addresses must not also be excluded, or the same tokens are subtracted twice."""
    duplicates = sorted(excluded.addresses & pools.addresses)
    if duplicates:
        raise ConfigLoadError(
            "Pool addresses found in the excluded address list, which would double count "
            "them in the supply calculation. Remove these from the excluded list: "
            + ", ".join(duplicates)
        )


def load_pool_interface(path: Path) -> list[dict]:
    abi = _read_json(path, "Staking pool interface")
    if not isinstance(abi, list) or not all(isinstance(item, dict) for item in abi):
        raise ConfigLoadError(f"Staking pool interface must be a JSON ABI array: {path}")

    functions = {item.get("name") for item in abi if item.get("type") == "function"}
    missing = [fn for fn in POOL_VESTING_FUNCTIONS.values() if fn not in functions]
    if missing:
        raise ConfigLoadError(f"Staking pool interface {path} is missing functions: {', '.join(missing)}")
    return abi
