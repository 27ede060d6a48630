"""In-memory token ledger holding non-negative integer balances."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Hashable, Iterable, Tuple

from .errors import AmountOverflowError, InsufficientBalanceError

Asset = Hashable
Holder = Hashable

MAX_AMOUNT = 2**256 - 1


def check_amount(amount: int) -> int:
    """Return ``amount`` if it is an integer inside ``[0, MAX_AMOUNT]``."""
    if isinstance(amount, bool) or not isinstance(amount, int):
        raise TypeError(f"Amounts must be integers, got {type(amount).__name__}.")
    if amount < 0:
        raise ValueError(f"Amounts must be non-negative, got {amount}.")
    if amount > MAX_AMOUNT:
        raise AmountOverflowError(f"Amount {amount} exceeds the 256-bit range.")
    return amount


@dataclass(frozen=True, slots=True)
class TransferLeg:
    """A single movement of ``amount`` units of ``asset`` between two holders."""

    sender: Holder
    recipient: Holder
    asset: Asset
    amount: int


class Ledger:
    """Balance store keyed by ``(holder, asset)``."""

    def __init__(self) -> None:
        self._balances: Dict[Tuple[Holder, Asset], int] = {}

    def balance_of(self, holder: Holder, asset: Asset) -> int:
        """Return the holder's balance of ``asset``; unknown holders read as zero."""
        return self._balances.get((holder, asset), 0)

    def mint(self, holder: Holder, asset: Asset, amount: int) -> None:
        """Issue new units of ``asset`` to ``holder``."""
        check_amount(amount)
        key = (holder, asset)
        self._balances[key] = self._credit(self._balances.get(key, 0), amount)

    def transfer(self, sender: Holder, recipient: Holder, asset: Asset, amount: int) -> None:
        """Move ``amount`` of ``asset`` from ``sender`` to ``recipient``."""
        self.settle([TransferLeg(sender, recipient, asset, amount)])

    def settle(self, legs: Iterable[TransferLeg]) -> None:
        """Apply every leg or none of them.

        Legs are applied in order against a staged copy of the touched
        balances; the staged values are committed only when every leg
        validated.
        """
        staged: Dict[Tuple[Holder, Asset], int] = {}

        def current(key: Tuple[Holder, Asset]) -> int:
            if key in staged:
                return staged[key]
            return self._balances.get(key, 0)

        for leg in legs:
            check_amount(leg.amount)
            source = (leg.sender, leg.asset)
            available = current(source)
            if available < leg.amount:
                raise InsufficientBalanceError(
                    f"{leg.sender!r} holds {available} {leg.asset}, needs {leg.amount}."
                )
            staged[source] = available - leg.amount
            target = (leg.recipient, leg.asset)
            staged[target] = self._credit(current(target), leg.amount)

        self._balances.update(staged)

    @staticmethod
    def _credit(balance: int, amount: int) -> int:
        total = balance + amount
        if total > MAX_AMOUNT:
            raise AmountOverflowError(f"Crediting {amount} to {balance} exceeds the 256-bit range.")
        return total
