from pydantic_settings import BaseSettings, SettingsConfigDict
from dotenv import load_dotenv
from pathlib import Path
import os

# Development 환경에서는 .env 파일을 로드. 컨테이너에서는 환경변수로 주입됨.
load_dotenv(dotenv_path="./.env")


class ChainSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")
    # 누락 시 import 시점이 아니라 build_state에서 ConfigLoadError로 처리
    RPC_URL: str | None = None
    TOKEN_ADDRESS: str | None = None


class RpcSettings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="RPC_", env_file=".env", env_file_encoding="utf-8", extra="ignore")
    TIMEOUT: float = 10.0       # seconds, per call
    MAX_RETRIES: int = 3        # retries after the first attempt
    BACKOFF_BASE: float = 0.5   # seconds, doubled on every retry


class SupplySettings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="SUPPLY_", env_file=".env", env_file_encoding="utf-8", extra="ignore")
    EXCLUDED_ADDRESSES_PATH: Path = Path("config/excluded_address_list.json")
    POOL_ADDRESSES_PATH: Path = Path("config/pool_address_list.json")
    POOL_INTERFACE_PATH: Path = Path("abi/staking_pool_abi.json")
    CACHE_TTL: float = 0.0      # seconds, 0 disables the cache
    SUBTRACT_BURNED: bool = False
    DECIMALS: int | None = None # skips the decimals() call when given


class ServerSettings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="SERVER_", env_file=".env", env_file_encoding="utf-8", extra="ignore")
    HOST: str = "0.0.0.0"
    PORT: int = 3000
    LOG_FILE: Path | None = None


# Instance Initiate
CHAIN = ChainSettings()
RPC = RpcSettings()
SUPPLY = SupplySettings()
SERVER = ServerSettings()
SLACK_WEBHOOK_URL: str | None = os.environ.get("SLACK_WEBHOOK_URL")
