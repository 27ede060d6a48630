"""Reserve exchange core: ledger, pricing and settlement."""

from .engine import ReserveExchange, SwapResult, calc_amount_out
from .errors import (
    AmountOverflowError,
    ConfigurationError,
    DivisionByZeroError,
    ExchangeError,
    InsufficientBalanceError,
    InsufficientReserveError,
    InvalidAssetError,
    SameAssetError,
    ZeroInputError,
)
from .ledger import MAX_AMOUNT, Ledger, TransferLeg

__all__ = [
    "ReserveExchange",
    "SwapResult",
    "calc_amount_out",
    "Ledger",
    "TransferLeg",
    "MAX_AMOUNT",
    "ExchangeError",
    "ConfigurationError",
    "InvalidAssetError",
    "SameAssetError",
    "ZeroInputError",
    "DivisionByZeroError",
    "InsufficientBalanceError",
    "InsufficientReserveError",
    "AmountOverflowError",
]
