class SupplyError(Exception):
    """Base class for every failure raised while computing a supply figure."""


class ChainCallError(SupplyError):
    """RPC endpoint unreachable, timed out, or the contract call reverted."""


class AbiDecodeError(SupplyError):
    """Response did not match the expected contract interface. Never retried."""


class ConfigLoadError(SupplyError):
    """Startup configuration is missing or malformed. Fatal."""


class NegativeResultWarning(UserWarning):
    """A subtraction would have gone negative and the result was clamped to zero."""
