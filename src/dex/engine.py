"""Two-asset reserve exchange with a linear, reserve-ratio price.

The exchange prices every swap as

    amount_out = floor(amount_in * reserve_out / reserve_in)

using the reserves as they stand before the trade. There is no invariant
such as a constant product behind the price, so each swap moves the ratio
and floor rounding leaks value across round trips. Reserves live in a
:class:`~dex.ledger.Ledger` as the balances of the exchange's own address.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, Optional, Tuple

from .errors import (
    AmountOverflowError,
    ConfigurationError,
    DivisionByZeroError,
    InsufficientBalanceError,
    InsufficientReserveError,
    InvalidAssetError,
    SameAssetError,
    ZeroInputError,
)
from .ledger import MAX_AMOUNT, Asset, Holder, Ledger, TransferLeg, check_amount

logger = logging.getLogger(__name__)


def calc_amount_out(amount_in: int, reserve_in: int, reserve_out: int) -> int:
    """Linear amountOut rounded toward zero, with no fee and no slippage term."""
    if reserve_in == 0:
        raise DivisionByZeroError("Cannot price against an empty input reserve.")
    numerator = amount_in * reserve_out
    if numerator > MAX_AMOUNT:
        raise AmountOverflowError(
            f"{amount_in} * {reserve_out} overflows the 256-bit range."
        )
    return numerator // reserve_in


@dataclass(frozen=True, slots=True)
class SwapResult:
    """Outcome of a settled swap."""

    from_asset: Asset
    to_asset: Asset
    input_amount: int
    output_amount: int


class ReserveExchange:
    """Hold two reserves and settle swaps between them."""

    def __init__(self, address: Holder = "exchange", ledger: Optional[Ledger] = None) -> None:
        self.address = address
        self.ledger = ledger if ledger is not None else Ledger()
        self._assets: Optional[Tuple[Asset, Asset]] = None

    @property
    def configured(self) -> bool:
        return self._assets is not None

    @property
    def assets(self) -> Tuple[Asset, Asset]:
        """The configured pair, in configuration order."""
        if self._assets is None:
            raise ConfigurationError("Exchange assets have not been configured.")
        return self._assets

    def configure(self, asset_a: Asset, asset_b: Asset) -> None:
        """Bind the exchange to exactly two distinct assets, once."""
        if self._assets is not None:
            raise ConfigurationError(f"Exchange is already configured for {self._assets}.")
        if asset_a == asset_b:
            raise ConfigurationError(f"Exchange assets must differ, got {asset_a!r} twice.")
        self._assets = (asset_a, asset_b)
        logger.info("Exchange %s configured for %s/%s", self.address, asset_a, asset_b)

    def fund(self, asset: Asset, amount: int, *, source: Optional[Holder] = None) -> None:
        """Increase a reserve during setup.

        With ``source`` the amount is transferred from that holder's ledger
        balance; otherwise it is minted straight into the reserve.
        """
        self._require_asset(asset)
        if amount <= 0:
            raise ZeroInputError(f"Funding amount must be positive, got {amount}.")
        if source is None:
            self.ledger.mint(self.address, asset, amount)
        else:
            self.ledger.transfer(source, self.address, asset, amount)
        logger.info("Funded %s reserve with %d (now %d)", asset, amount, self.reserve_of(asset))

    def balance_of(self, participant: Holder, asset: Asset) -> int:
        """Return a participant's balance of one of the configured assets."""
        self._require_asset(asset)
        return self.ledger.balance_of(participant, asset)

    def reserve_of(self, asset: Asset) -> int:
        return self.balance_of(self.address, asset)

    def reserves(self) -> Dict[Asset, int]:
        """Snapshot of both reserves keyed by asset."""
        return {asset: self.reserve_of(asset) for asset in self.assets}

    def quote(self, from_asset: Asset, to_asset: Asset, input_amount: int) -> int:
        """Price ``input_amount`` of ``from_asset`` in ``to_asset`` at current reserves."""
        self._require_asset(from_asset)
        self._require_asset(to_asset)
        if from_asset == to_asset:
            raise SameAssetError(f"Cannot swap {from_asset!r} for itself.")
        if isinstance(input_amount, bool) or not isinstance(input_amount, int):
            raise TypeError(f"Input amount must be an integer, got {type(input_amount).__name__}.")
        if input_amount <= 0:
            raise ZeroInputError(f"Input amount must be positive, got {input_amount}.")
        check_amount(input_amount)
        reserve_in = self.reserve_of(from_asset)
        if reserve_in == 0:
            raise DivisionByZeroError(f"Reserve of {from_asset} is empty; cannot quote from it.")
        return calc_amount_out(input_amount, reserve_in, self.reserve_of(to_asset))

    def swap(
        self,
        requester: Holder,
        from_asset: Asset,
        to_asset: Asset,
        input_amount: int,
    ) -> SwapResult:
        """Settle a swap atomically; nothing changes when any check fails."""
        output_amount = self.quote(from_asset, to_asset, input_amount)

        held = self.ledger.balance_of(requester, from_asset)
        if held < input_amount:
            raise InsufficientBalanceError(
                f"{requester!r} holds {held} {from_asset}, cannot offer {input_amount}."
            )
        reserve_out = self.reserve_of(to_asset)
        if output_amount > reserve_out:
            raise InsufficientReserveError(
                f"Quote of {output_amount} {to_asset} exceeds reserve of {reserve_out}."
            )

        self.ledger.settle(
            [
                TransferLeg(requester, self.address, from_asset, input_amount),
                TransferLeg(self.address, requester, to_asset, output_amount),
            ]
        )
        logger.debug(
            "Swap %s: %d %s -> %d %s | reserves %s",
            requester,
            input_amount,
            from_asset,
            output_amount,
            to_asset,
            self.reserves(),
        )
        return SwapResult(from_asset, to_asset, input_amount, output_amount)

    def _require_asset(self, asset: Asset) -> None:
        if asset not in self.assets:
            raise InvalidAssetError(f"{asset!r} is not traded on this exchange.")
