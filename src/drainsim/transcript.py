"""Utilities for persisting drain run transcripts."""

from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path

from common import Settings

from .agent import DrainResult


def write_transcript(
    result: DrainResult,
    settings: Settings,
    *,
    output_path: str | Path | None = None,
    metadata: dict[str, str] | None = None,
) -> Path:
    """Persist a drain run transcript to disk and return the file path."""
    destination = _resolve_destination(settings, output_path)
    destination.parent.mkdir(parents=True, exist_ok=True)

    payload = {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "environment": settings.environment,
        "final_state": result.final_state.value,
        "iterations_used": result.iterations_used,
        "metadata": metadata or {},
        "reserves": _keyed(result.reserves),
        "balances": _keyed(result.balances),
        "entries": [
            {
                "iteration": step.iteration,
                "from_asset": str(step.from_asset),
                "to_asset": str(step.to_asset),
                "input_amount": step.input_amount,
                "output_amount": step.output_amount,
                "reserves": _keyed(step.reserves),
                "balances": _keyed(step.balances),
            }
            for step in result.steps
        ],
    }

    destination.write_text(json.dumps(payload, indent=2), encoding="utf-8")
    return destination


def _keyed(amounts: dict) -> dict[str, int]:
    return {str(asset): amount for asset, amount in amounts.items()}


def _resolve_destination(settings: Settings, output_path: str | Path | None) -> Path:
    if output_path:
        return Path(output_path)

    return settings.transcripts_dir / f"drain_{_timestamp_token()}.json"


def _timestamp_token() -> str:
    return datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%SZ")
