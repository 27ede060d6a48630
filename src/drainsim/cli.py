"""Command-line interface for the reserve drain simulator."""

from __future__ import annotations

import argparse
from typing import Optional, Sequence

from common import Settings, configure_logging
from dex import ExchangeError

from .agent import DrainResult, RetryPolicy, run_drain_strategy
from .bootstrap import DEFAULT_SCENARIO, Scenario, ScenarioError, build_exchange, load_scenario
from .transcript import write_transcript


def _non_negative_int(value: str) -> int:
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected an integer, got {value!r}") from None
    if number < 0:
        raise argparse.ArgumentTypeError(f"must be non-negative, got {number}")
    return number


def create_parser() -> argparse.ArgumentParser:
    """Build the CLI argument parser."""
    parser = argparse.ArgumentParser(description="drainsim reserve exchange drain simulator")
    parser.add_argument(
        "--env-file",
        action="append",
        default=None,
        help="Path to a .env file to read before executing commands. Can be provided multiple times.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    run_parser = subparsers.add_parser("run", help="Run the drain strategy against a fresh exchange")
    run_parser.add_argument(
        "--max-iterations",
        type=_non_negative_int,
        default=None,
        help="Maximum number of swaps to issue (falls back to DRAINSIM_MAX_ITERATIONS)",
    )
    run_parser.add_argument("--scenario", help="YAML scenario describing initial funding")
    run_parser.add_argument(
        "--retry-policy",
        choices=[policy.value for policy in RetryPolicy],
        default=None,
        help="Reaction to a swap exceeding the receiving reserve (default: halt)",
    )
    run_parser.add_argument(
        "--transcript",
        action="store_true",
        help="Write a JSON transcript of the run to the transcripts directory",
    )
    run_parser.add_argument("--transcript-path", help="Explicit transcript destination (implies --transcript)")
    run_parser.set_defaults(handler=_handle_run)

    quote_parser = subparsers.add_parser("quote", help="Quote a single swap against a fresh exchange")
    quote_parser.add_argument("--from", dest="from_asset", required=True, help="Asset offered")
    quote_parser.add_argument("--to", dest="to_asset", required=True, help="Asset received")
    quote_parser.add_argument("--amount", type=int, required=True, help="Amount of the offered asset")
    quote_parser.add_argument("--scenario", help="YAML scenario describing initial funding")
    quote_parser.set_defaults(handler=_handle_quote)

    return parser


def run_cli(argv: Sequence[str] | None = None) -> int:
    """Entry point for handling CLI execution."""
    parser = create_parser()
    args = parser.parse_args(argv)

    try:
        settings = Settings.from_env(env_files=args.env_file)
    except ValueError as exc:
        parser.error(str(exc))
    configure_logging(settings.log_level, name=__package__)

    if args.command == "run":
        _check_run_options(parser, args, settings)

    handler = getattr(args, "handler", None)
    if handler is None:
        parser.error("No handler configured for the provided command")
    try:
        return handler(args, settings)
    except (ExchangeError, ScenarioError) as exc:
        print(f"Error: {exc}")
        return 1


def _check_run_options(
    parser: argparse.ArgumentParser, args: argparse.Namespace, settings: Settings
) -> None:
    """Reject a missing or negative cap and an unknown retry policy before any setup."""
    if args.max_iterations is None:
        if settings.max_iterations is None:
            parser.error("an iteration cap is required: pass --max-iterations or set DRAINSIM_MAX_ITERATIONS")
        if settings.max_iterations < 0:
            parser.error(f"DRAINSIM_MAX_ITERATIONS must be non-negative, got {settings.max_iterations}")
    if args.retry_policy is None:
        valid = [policy.value for policy in RetryPolicy]
        if settings.retry_policy not in valid:
            parser.error(
                f"DRAINSIM_RETRY_POLICY must be one of {', '.join(valid)}, got {settings.retry_policy!r}"
            )


def _resolve_scenario(path: Optional[str], settings: Settings) -> Scenario:
    source = path or settings.scenario_path
    return load_scenario(source) if source else DEFAULT_SCENARIO


def _handle_run(args: argparse.Namespace, settings: Settings) -> int:
    """Drain a freshly funded exchange and print every round."""
    scenario = _resolve_scenario(args.scenario, settings)
    exchange = build_exchange(scenario)
    max_iterations = args.max_iterations if args.max_iterations is not None else settings.max_iterations
    policy = args.retry_policy or settings.retry_policy

    print(f"Initial reserves: {_format(exchange.reserves())}")
    result = run_drain_strategy(
        exchange,
        scenario.agent_address,
        max_iterations,
        retry_policy=policy,
    )
    _print_result(result)

    if args.transcript or args.transcript_path:
        path = write_transcript(
            result,
            settings,
            output_path=args.transcript_path,
            metadata={"retry_policy": RetryPolicy(policy).value, "agent": scenario.agent_address},
        )
        print(f"Transcript written to {path}")
    return 0


def _handle_quote(args: argparse.Namespace, settings: Settings) -> int:
    scenario = _resolve_scenario(args.scenario, settings)
    exchange = build_exchange(scenario)
    amount_out = exchange.quote(args.from_asset, args.to_asset, args.amount)
    print(f"Quote: {args.amount} {args.from_asset} -> {amount_out} {args.to_asset}")
    print(f"Reserves: {_format(exchange.reserves())}")
    return 0


def _print_result(result: DrainResult) -> None:
    print("Drain Rounds:")
    for step in result.steps:
        print(
            " | ".join(
                [
                    f"[{step.iteration}] {step.from_asset} -> {step.to_asset}",
                    f"in={step.input_amount} out={step.output_amount}",
                    f"reserves {_format(step.reserves)}",
                    f"agent {_format(step.balances)}",
                ]
            )
        )
    print(f"Final State: {result.final_state.value} after {result.iterations_used} iterations")
    print(f"Exchange reserves: {_format(result.reserves)}")
    print(f"Agent balances: {_format(result.balances)}")


def _format(amounts: dict) -> str:
    return " ".join(f"{asset}={amount}" for asset, amount in amounts.items())
