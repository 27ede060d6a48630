"""Helpers to bootstrap an exchange and its participants from a scenario."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Tuple

import yaml

from dex import ReserveExchange


class ScenarioError(ValueError):
    """Raised when a scenario file is missing fields or holds invalid values."""


@dataclass(frozen=True)
class Scenario:
    """Initial funding for one simulation run.

    The owner is issued ``supply`` of each asset, funds the exchange reserves
    from that supply and hands the agent its starting balances.
    """

    assets: Tuple[str, str] = ("TKN1", "TKN2")
    supply: int = 1000
    owner: str = "owner"
    exchange_address: str = "dex"
    agent_address: str = "user"
    reserves: Dict[str, int] = field(default_factory=lambda: {"TKN1": 100, "TKN2": 100})
    balances: Dict[str, int] = field(default_factory=lambda: {"TKN1": 10, "TKN2": 10})


DEFAULT_SCENARIO = Scenario()


def load_scenario(path: str | Path) -> Scenario:
    """Read a YAML scenario file."""
    try:
        raw = yaml.safe_load(Path(path).read_text(encoding="utf-8"))
    except OSError as exc:
        raise ScenarioError(f"Cannot read scenario '{path}': {exc}") from exc
    except yaml.YAMLError as exc:
        raise ScenarioError(f"Scenario '{path}' is not valid YAML: {exc}") from exc
    if not isinstance(raw, dict):
        raise ScenarioError(f"Scenario '{path}' must be a mapping.")
    return scenario_from_dict(raw)


def scenario_from_dict(data: Dict[str, Any]) -> Scenario:
    assets = data.get("assets", list(DEFAULT_SCENARIO.assets))
    if not isinstance(assets, (list, tuple)) or len(assets) != 2:
        raise ScenarioError("'assets' must list exactly two asset names.")
    asset_a, asset_b = (str(name) for name in assets)

    exchange = data.get("exchange") or {}
    agent = data.get("agent") or {}
    return Scenario(
        assets=(asset_a, asset_b),
        supply=_amount(data.get("supply", DEFAULT_SCENARIO.supply), "supply"),
        owner=str(data.get("owner", DEFAULT_SCENARIO.owner)),
        exchange_address=str(exchange.get("address", DEFAULT_SCENARIO.exchange_address)),
        agent_address=str(agent.get("address", DEFAULT_SCENARIO.agent_address)),
        reserves=_amounts(exchange.get("reserves", {}), (asset_a, asset_b), "exchange.reserves"),
        balances=_amounts(agent.get("balances", {}), (asset_a, asset_b), "agent.balances"),
    )


def build_exchange(scenario: Scenario = DEFAULT_SCENARIO) -> ReserveExchange:
    """Issue supply, configure the pair, fund reserves and hand out agent balances."""
    for asset in scenario.assets:
        needed = scenario.reserves.get(asset, 0) + scenario.balances.get(asset, 0)
        if needed > scenario.supply:
            raise ScenarioError(
                f"Supply of {scenario.supply} {asset} cannot cover {needed} of initial funding."
            )

    exchange = ReserveExchange(address=scenario.exchange_address)
    for asset in scenario.assets:
        exchange.ledger.mint(scenario.owner, asset, scenario.supply)
    exchange.configure(*scenario.assets)
    for asset in scenario.assets:
        reserve = scenario.reserves.get(asset, 0)
        if reserve:
            exchange.fund(asset, reserve, source=scenario.owner)
        balance = scenario.balances.get(asset, 0)
        if balance:
            exchange.ledger.transfer(scenario.owner, scenario.agent_address, asset, balance)
    return exchange


def _amount(value: Any, name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise ScenarioError(f"'{name}' must be a non-negative integer, got {value!r}.")
    return value


def _amounts(values: Any, assets: Tuple[str, str], name: str) -> Dict[str, int]:
    if not isinstance(values, dict):
        raise ScenarioError(f"'{name}' must map asset names to amounts.")
    unknown = set(map(str, values)) - set(assets)
    if unknown:
        raise ScenarioError(f"'{name}' names unknown assets: {sorted(unknown)}.")
    return {asset: _amount(values.get(asset, 0), f"{name}.{asset}") for asset in assets}
