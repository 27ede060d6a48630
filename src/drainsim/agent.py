"""Drain strategy agent that swaps against a reserve exchange until it is empty.

Each round the agent reads both reserves and its own balances, offers
``min(own[offered], reserve[offered])`` of one asset for the other, and
repeats. Capping the offer at the offered asset's reserve keeps every quote
within the receiving reserve, because ``floor(r_in * r_out / r_in) == r_out``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Hashable, List, Optional, Union

from dex import InsufficientReserveError, ReserveExchange

logger = logging.getLogger(__name__)


class FinalState(str, Enum):
    """How a drain run ended; ``LIMIT_REACHED`` means the iteration cap ran out first."""

    DRAINED = "DRAINED"
    STUCK = "STUCK"
    EXHAUSTED = "EXHAUSTED"
    LIMIT_REACHED = "LIMIT_REACHED"


class RetryPolicy(str, Enum):
    """What to do when a swap is rejected for exceeding the receiving reserve."""

    HALT = "halt"
    CLAMP = "clamp"


@dataclass(frozen=True, slots=True)
class SwapRequest:
    from_asset: Hashable
    to_asset: Hashable
    input_amount: int


@dataclass(slots=True)
class SwapStep:
    """A settled round: the swap issued and the state right after it."""

    iteration: int
    from_asset: Hashable
    to_asset: Hashable
    input_amount: int
    output_amount: int
    reserves: Dict[Hashable, int]
    balances: Dict[Hashable, int]


@dataclass(slots=True)
class DrainResult:
    final_state: FinalState
    iterations_used: int
    steps: List[SwapStep] = field(default_factory=list)
    reserves: Dict[Hashable, int] = field(default_factory=dict)
    balances: Dict[Hashable, int] = field(default_factory=dict)

    @property
    def drained(self) -> bool:
        return self.final_state is FinalState.DRAINED


Decision = Union[SwapRequest, FinalState]


class DrainAgent:
    """Drive swaps for ``identity`` against ``exchange``."""

    def __init__(
        self,
        exchange: ReserveExchange,
        identity: Hashable,
        *,
        retry_policy: RetryPolicy | str = RetryPolicy.HALT,
        preferred_asset: Optional[Hashable] = None,
    ) -> None:
        self.exchange = exchange
        self.identity = identity
        self.retry_policy = RetryPolicy(retry_policy)
        asset_a, asset_b = exchange.assets
        if preferred_asset is None or preferred_asset == asset_a:
            self._order = (asset_a, asset_b)
        elif preferred_asset == asset_b:
            self._order = (asset_b, asset_a)
        else:
            raise ValueError(f"Preferred asset {preferred_asset!r} is not traded on the exchange.")

    def balances(self) -> Dict[Hashable, int]:
        return {asset: self.exchange.balance_of(self.identity, asset) for asset in self._order}

    def decide(self) -> Decision:
        """Return the next swap, or the terminal state when no swap should be issued."""
        reserves = self.exchange.reserves()
        if all(amount == 0 for amount in reserves.values()):
            return FinalState.DRAINED

        balances = self.balances()
        logger.info("Exchange reserves: %s | agent balances: %s", reserves, balances)
        if all(amount == 0 for amount in balances.values()):
            return FinalState.EXHAUSTED

        for offered in self._order:
            wanted = self._counterpart(offered)
            if balances[offered] == 0:
                continue
            if reserves[offered] == 0:
                logger.debug("Skipping %s: its reserve is empty", offered)
                continue
            amount = min(balances[offered], reserves[offered])
            if self.exchange.quote(offered, wanted, amount) == 0:
                logger.debug("Skipping %s: offering %d would return nothing", offered, amount)
                continue
            return SwapRequest(offered, wanted, amount)
        return FinalState.STUCK

    def run(self, max_iterations: int) -> DrainResult:
        """Run the decision loop for at most ``max_iterations`` swaps."""
        if isinstance(max_iterations, bool) or not isinstance(max_iterations, int):
            raise TypeError("max_iterations must be an integer.")
        if max_iterations < 0:
            raise ValueError(f"max_iterations must be non-negative, got {max_iterations}.")

        steps: List[SwapStep] = []
        for iteration in range(max_iterations):
            decision = self.decide()
            if isinstance(decision, FinalState):
                return self._finish(decision, iteration, steps)

            step = self._execute(decision, iteration + 1)
            if step is None:
                return self._finish(FinalState.STUCK, iteration + 1, steps)
            steps.append(step)

        decision = self.decide()
        final_state = decision if isinstance(decision, FinalState) else FinalState.LIMIT_REACHED
        return self._finish(final_state, max_iterations, steps)

    def _execute(self, request: SwapRequest, iteration: int) -> Optional[SwapStep]:
        try:
            result = self.exchange.swap(
                self.identity, request.from_asset, request.to_asset, request.input_amount
            )
        except InsufficientReserveError as exc:
            if self.retry_policy is RetryPolicy.HALT:
                logger.warning("Swap rejected, halting: %s", exc)
                return None
            clamped = self._clamp(request)
            if clamped is None:
                logger.warning("Swap rejected and no smaller offer fits: %s", exc)
                return None
            logger.info("Swap rejected, retrying with %d instead of %d", clamped, request.input_amount)
            try:
                result = self.exchange.swap(
                    self.identity, request.from_asset, request.to_asset, clamped
                )
            except InsufficientReserveError as retry_exc:
                logger.warning("Clamped swap rejected, halting: %s", retry_exc)
                return None

        logger.info(
            "[%d] swapped %d %s for %d %s",
            iteration,
            result.input_amount,
            result.from_asset,
            result.output_amount,
            result.to_asset,
        )
        return SwapStep(
            iteration=iteration,
            from_asset=result.from_asset,
            to_asset=result.to_asset,
            input_amount=result.input_amount,
            output_amount=result.output_amount,
            reserves=self.exchange.reserves(),
            balances=self.balances(),
        )

    def _clamp(self, request: SwapRequest) -> Optional[int]:
        """Largest input below the rejected one whose quote fits the receiving reserve."""
        available = self.exchange.reserve_of(request.to_asset)
        low, high = 0, request.input_amount - 1
        while low < high:
            mid = (low + high + 1) // 2
            if self.exchange.quote(request.from_asset, request.to_asset, mid) <= available:
                low = mid
            else:
                high = mid - 1
        if low == 0 or self.exchange.quote(request.from_asset, request.to_asset, low) == 0:
            return None
        return low

    def _counterpart(self, asset: Hashable) -> Hashable:
        first, second = self._order
        return second if asset == first else first

    def _finish(self, state: FinalState, iterations: int, steps: List[SwapStep]) -> DrainResult:
        result = DrainResult(
            final_state=state,
            iterations_used=iterations,
            steps=steps,
            reserves=self.exchange.reserves(),
            balances=self.balances(),
        )
        logger.info("Drain finished: %s after %d iterations", state.value, iterations)
        return result


def run_drain_strategy(
    exchange: ReserveExchange,
    agent_identity: Hashable,
    max_iterations: int,
    *,
    retry_policy: RetryPolicy | str = RetryPolicy.HALT,
    preferred_asset: Optional[Hashable] = None,
) -> DrainResult:
    """Drain ``exchange`` on behalf of ``agent_identity`` within an iteration cap."""
    agent = DrainAgent(
        exchange,
        agent_identity,
        retry_policy=retry_policy,
        preferred_asset=preferred_asset,
    )
    return agent.run(max_iterations)
