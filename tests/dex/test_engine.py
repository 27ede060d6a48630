import pytest

from dex import (
    MAX_AMOUNT,
    AmountOverflowError,
    ConfigurationError,
    DivisionByZeroError,
    InsufficientBalanceError,
    InsufficientReserveError,
    InvalidAssetError,
    ReserveExchange,
    SameAssetError,
    ZeroInputError,
    calc_amount_out,
)


def _exchange(reserve_a: int = 100, reserve_b: int = 100, user_a: int = 10, user_b: int = 10) -> ReserveExchange:
    exchange = ReserveExchange(address="dex")
    exchange.configure("A", "B")
    if reserve_a:
        exchange.fund("A", reserve_a)
    if reserve_b:
        exchange.fund("B", reserve_b)
    if user_a:
        exchange.ledger.mint("user", "A", user_a)
    if user_b:
        exchange.ledger.mint("user", "B", user_b)
    return exchange


def _totals(exchange: ReserveExchange) -> dict:
    return {
        asset: exchange.reserve_of(asset) + exchange.balance_of("user", asset)
        for asset in exchange.assets
    }


def test_calc_amount_out_floors_linear_price():
    assert calc_amount_out(10, 100, 100) == 10
    assert calc_amount_out(20, 90, 110) == 24
    assert calc_amount_out(24, 86, 110) == 30
    assert calc_amount_out(1, 3, 2) == 0


def test_calc_amount_out_rejects_empty_input_reserve():
    with pytest.raises(DivisionByZeroError):
        calc_amount_out(5, 0, 100)


def test_calc_amount_out_checks_product_overflow():
    with pytest.raises(AmountOverflowError):
        calc_amount_out(MAX_AMOUNT, 1, 2)


def test_configure_twice_fails():
    exchange = ReserveExchange()
    exchange.configure("A", "B")
    with pytest.raises(ConfigurationError):
        exchange.configure("A", "B")


def test_configure_identical_assets_fails():
    exchange = ReserveExchange()
    with pytest.raises(ConfigurationError):
        exchange.configure("A", "A")
    assert not exchange.configured


def test_unconfigured_exchange_rejects_operations():
    exchange = ReserveExchange()
    with pytest.raises(ConfigurationError):
        exchange.quote("A", "B", 1)
    with pytest.raises(ConfigurationError):
        exchange.fund("A", 1)


def test_fund_requires_positive_amount_and_known_asset():
    exchange = _exchange()
    with pytest.raises(ZeroInputError):
        exchange.fund("A", 0)
    with pytest.raises(InvalidAssetError):
        exchange.fund("C", 5)
    assert exchange.reserve_of("A") == 100


def test_fund_from_source_moves_ledger_balance():
    exchange = ReserveExchange(address="dex")
    exchange.configure("A", "B")
    exchange.ledger.mint("owner", "A", 1000)
    exchange.fund("A", 100, source="owner")
    assert exchange.reserve_of("A") == 100
    assert exchange.balance_of("owner", "A") == 900
    with pytest.raises(InsufficientBalanceError):
        exchange.fund("B", 1, source="owner")


def test_quote_validation_order():
    exchange = _exchange(reserve_a=0)
    with pytest.raises(InvalidAssetError):
        exchange.quote("C", "C", 0)
    with pytest.raises(SameAssetError):
        exchange.quote("A", "A", 0)
    with pytest.raises(ZeroInputError):
        exchange.quote("A", "B", 0)
    with pytest.raises(ZeroInputError):
        exchange.quote("B", "A", -3)
    with pytest.raises(DivisionByZeroError):
        exchange.quote("A", "B", 5)


def test_quote_is_deterministic_and_pure():
    exchange = _exchange(reserve_a=86, reserve_b=110)
    first = exchange.quote("A", "B", 24)
    second = exchange.quote("A", "B", 24)
    assert first == second == 30
    assert exchange.reserves() == {"A": 86, "B": 110}


@pytest.mark.parametrize(
    "amount, reserve_in, reserve_out",
    [(1, 7, 3), (13, 97, 41), (45, 45, 110), (999, 1000, 1), (7, 3, 1000)],
)
def test_quote_never_rounds_up(amount, reserve_in, reserve_out):
    exchange = _exchange(reserve_a=reserve_in, reserve_b=reserve_out)
    out = exchange.quote("A", "B", amount)
    assert out * reserve_in <= amount * reserve_out
    assert (out + 1) * reserve_in > amount * reserve_out


def test_swap_settles_both_sides():
    exchange = _exchange()
    result = exchange.swap("user", "A", "B", 10)

    assert result.output_amount == 10
    assert exchange.reserves() == {"A": 110, "B": 90}
    assert exchange.balance_of("user", "A") == 0
    assert exchange.balance_of("user", "B") == 20


def test_swap_conserves_totals_per_asset():
    exchange = _exchange(reserve_a=110, reserve_b=90, user_a=0, user_b=20)
    before = _totals(exchange)
    reserves_before = exchange.reserves()

    result = exchange.swap("user", "B", "A", 20)

    assert result.output_amount == 24
    assert exchange.reserve_of("B") == reserves_before["B"] + 20
    assert exchange.reserve_of("A") == reserves_before["A"] - 24
    assert _totals(exchange) == before


def test_swap_rejects_insufficient_balance_without_side_effects():
    exchange = _exchange()
    with pytest.raises(InsufficientBalanceError):
        exchange.swap("user", "A", "B", 11)
    assert exchange.reserves() == {"A": 100, "B": 100}
    assert exchange.balance_of("user", "A") == 10


def test_swap_rejects_output_beyond_reserve_without_side_effects():
    exchange = _exchange(reserve_a=10, reserve_b=5, user_a=50, user_b=0)
    assert exchange.quote("A", "B", 20) == 10
    with pytest.raises(InsufficientReserveError):
        exchange.swap("user", "A", "B", 20)
    assert exchange.reserves() == {"A": 10, "B": 5}
    assert exchange.balance_of("user", "A") == 50
    assert exchange.balance_of("user", "B") == 0


def test_swap_from_empty_reserve_never_divides():
    exchange = _exchange(reserve_a=0, reserve_b=90, user_a=110, user_b=0)
    with pytest.raises(DivisionByZeroError):
        exchange.swap("user", "A", "B", 10)
    assert exchange.balance_of("user", "A") == 110


def test_division_by_zero_error_is_a_zero_division_error():
    exchange = _exchange(reserve_a=0)
    with pytest.raises(ZeroDivisionError):
        exchange.quote("A", "B", 1)


def test_zero_output_swap_donates_input():
    exchange = _exchange(reserve_a=90, reserve_b=0, user_a=0, user_b=0)
    exchange.ledger.mint("user", "A", 20)
    result = exchange.swap("user", "A", "B", 20)
    assert result.output_amount == 0
    assert exchange.reserves() == {"A": 110, "B": 0}


def test_round_trips_never_drive_balances_negative():
    exchange = _exchange(reserve_a=37, reserve_b=53, user_a=19, user_b=23)
    totals = _totals(exchange)
    for _ in range(25):
        for offered, wanted in (("A", "B"), ("B", "A")):
            held = exchange.balance_of("user", offered)
            reserve = exchange.reserve_of(offered)
            if held == 0 or reserve == 0:
                continue
            exchange.swap("user", offered, wanted, min(held, reserve))
            for asset in exchange.assets:
                assert exchange.reserve_of(asset) >= 0
                assert exchange.balance_of("user", asset) >= 0
            assert _totals(exchange) == totals


def test_balance_check_precedes_reserve_check():
    exchange = _exchange(reserve_a=10, reserve_b=5, user_a=5, user_b=0)
    # 20 A would quote 10 B, beyond the 5 B reserve, but the user only holds 5 A.
    with pytest.raises(InsufficientBalanceError):
        exchange.swap("user", "A", "B", 20)
    assert exchange.reserves() == {"A": 10, "B": 5}
    assert exchange.balance_of("user", "A") == 5


def test_empty_reserve_check_precedes_balance_check():
    exchange = _exchange(reserve_a=0, reserve_b=90, user_a=0, user_b=0)
    with pytest.raises(DivisionByZeroError):
        exchange.swap("user", "A", "B", 5)
    assert exchange.reserves() == {"A": 0, "B": 90}


def test_quote_and_swap_reject_overflowing_product():
    exchange = _exchange(reserve_a=1, reserve_b=2, user_a=0, user_b=0)
    amount = MAX_AMOUNT // 2 + 1
    exchange.ledger.mint("user", "A", amount)

    with pytest.raises(AmountOverflowError):
        exchange.quote("A", "B", amount)
    with pytest.raises(AmountOverflowError):
        exchange.swap("user", "A", "B", amount)

    assert exchange.reserves() == {"A": 1, "B": 2}
    assert exchange.balance_of("user", "A") == amount
    assert exchange.balance_of("user", "B") == 0
