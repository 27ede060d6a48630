"""Errors raised by the reserve exchange and its ledger."""

from __future__ import annotations


class ExchangeError(Exception):
    """Base class for recoverable exchange and ledger failures."""


class ConfigurationError(ExchangeError):
    """The exchange asset pair is missing, repeated, or invalid."""


class InvalidAssetError(ExchangeError):
    """An asset is not one of the exchange's configured pair."""


class SameAssetError(ExchangeError):
    """A swap names the same asset on both sides."""


class ZeroInputError(ExchangeError):
    """A swap or funding amount is not strictly positive."""


class DivisionByZeroError(ExchangeError, ZeroDivisionError):
    """The offered asset's reserve is empty, so no price can be computed."""


class InsufficientBalanceError(ExchangeError):
    """A holder does not own enough of an asset to cover a debit."""


class InsufficientReserveError(ExchangeError):
    """A quoted output exceeds the exchange's reserve of the received asset."""


class AmountOverflowError(ExchangeError, OverflowError):
    """An amount or intermediate product leaves the 256-bit unsigned range."""
