from decimal import Decimal
from types import SimpleNamespace

from factories import make_deal
from metareport.services import metrics

def test_is_trade_deal_matches_buy_and_sell_case_insensitively():
    assert metrics.is_trade_deal(make_deal(type="DEAL_TYPE_BUY"))
    assert metrics.is_trade_deal(make_deal(type="DEAL_TYPE_SELL"))
    assert metrics.is_trade_deal(make_deal(type="buy"))
    assert metrics.is_trade_deal(make_deal(type="Sell Stop"))

def test_is_trade_deal_excludes_administrative_entries():
    assert not metrics.is_trade_deal(make_deal(type="DEAL_TYPE_BALANCE"))
    assert not metrics.is_trade_deal(make_deal(type="DEAL_TYPE_CREDIT"))
    assert not metrics.is_trade_deal(make_deal(type=""))

def test_is_trade_deal_with_missing_type():
    assert not metrics.is_trade_deal(make_deal(type=None))
    assert not metrics.is_trade_deal(SimpleNamespace())

def test_net_profit_includes_negative_swap_and_commission():
    deal = make_deal(profit="100.00", swap="-2.50", commission="-1.00")
    assert metrics.net_profit(deal) == Decimal("96.50")

def test_win_rate_ignores_break_even_trades():
    deals = [make_deal(profit=p) for p in ("50", "-20", "0", "30")]
    assert metrics.winning_trades(deals) == 2
    assert metrics.losing_trades(deals) == 1
    assert round(metrics.win_rate(deals), 1) == Decimal("66.7")

def test_win_rate_with_many_break_even_trades():
    deals = [make_deal(profit=p) for p in ("50", "30", "-20", "-10", "0", "0", "0", "0")]
    assert metrics.win_rate(deals) == Decimal("50")

def test_win_rate_zero_without_decisive_trades():
    assert metrics.win_rate([]) == 0
    assert metrics.win_rate([make_deal(profit="0"), make_deal(profit="0")]) == 0
    assert metrics.win_rate([make_deal(type="DEAL_TYPE_BALANCE", profit="100")]) == 0

def test_total_profit_excludes_non_trading_deals():
    deals = [
        make_deal(type="DEAL_TYPE_BALANCE", profit="10000"),
        make_deal(type="DEAL_TYPE_CREDIT", profit="500"),
        make_deal(type="DEAL_TYPE_BUY", profit="25", commission="-1"),
    ]
    assert metrics.total_profit(deals) == Decimal("24")

def test_calculate_stats_empty():
    stats = metrics.calculate_stats([])
    assert stats["count"] == 0
    assert stats["wins"] == 0
    assert stats["losses"] == 0
    assert stats["win_rate"] == 0.0
    assert stats["total_profit"] == 0.0

def test_calculate_stats_basic():
    deals = [
        make_deal(profit="50"), make_deal(profit="-20"), make_deal(profit="0"),
        make_deal(type="DEAL_TYPE_BALANCE", profit="1000"),
    ]
    stats = metrics.calculate_stats(deals)
    assert stats["count"] == 3
    assert stats["wins"] == 1
    assert stats["losses"] == 1
    assert stats["win_rate"] == 50.0
    assert stats["total_profit"] == 30.0

def test_stats_round_half_up():
    deals = [make_deal(profit="0.125")] + [make_deal(profit="-1") for _ in range(15)]
    stats = metrics.calculate_stats([deals[0]])
    assert stats["total_profit"] == 0.13

    stats = metrics.calculate_stats(deals)
    # 1 / 16 = 6.25%
    assert stats["win_rate"] == 6.3

def test_round_half_up():
    assert metrics.round_half_up(Decimal("6.25"), 1) == Decimal("6.3")
    assert metrics.round_half_up(Decimal("0.125"), 2) == Decimal("0.13")
    assert metrics.round_half_up(Decimal("-0.125"), 2) == Decimal("-0.13")
