from decimal import ROUND_HALF_UP, Decimal
from typing import TYPE_CHECKING, Dict, Iterable, List

if TYPE_CHECKING:
    from metareport.core.models import Deal

ZERO = Decimal("0")
HUNDRED = Decimal("100")


def round_half_up(value: Decimal, places: int) -> Decimal:
    """Half-up rounding for displayed figures: 0.125 -> 0.13, 6.25 -> 6.3."""
    return value.quantize(Decimal(1).scaleb(-places), rounding=ROUND_HALF_UP)


def is_trade_deal(deal: "Deal") -> bool:
    """Buy/sell executions only. Balance, credit and other ledger entries are excluded."""
    deal_type = getattr(deal, "type", None)
    if not deal_type:
        return False
    deal_type = deal_type.lower()
    return "buy" in deal_type or "sell" in deal_type


def net_profit(deal: "Deal") -> Decimal:
    return deal.profit + deal.swap + deal.commission


def trading_deals(deals: Iterable["Deal"]) -> List["Deal"]:
    return [d for d in deals if is_trade_deal(d)]


def total_profit(deals: Iterable["Deal"]) -> Decimal:
    return sum((net_profit(d) for d in trading_deals(deals)), ZERO)


def winning_trades(deals: Iterable["Deal"]) -> int:
    return sum(1 for d in trading_deals(deals) if net_profit(d) > 0)


def losing_trades(deals: Iterable["Deal"]) -> int:
    return sum(1 for d in trading_deals(deals) if net_profit(d) < 0)


def win_rate(deals: Iterable["Deal"]) -> Decimal:
    """
    Percentage of winning trades among decisive trades.
    Break-even trades are left out of the denominator; returns 0 when
    there is nothing decisive to divide by.
    """
    deals = list(deals)
    wins = winning_trades(deals)
    decisive = wins + losing_trades(deals)
    if decisive == 0:
        return ZERO
    return Decimal(wins) / Decimal(decisive) * HUNDRED


def calculate_stats(deals: Iterable["Deal"]) -> Dict:
    """
    Calculate every report figure at once from a list of deals.
    Non-trading entries are ignored; an empty list yields all zeros.
    """
    deals = list(deals)
    trades = trading_deals(deals)

    return {
        "count": len(trades),
        "wins": winning_trades(trades),
        "losses": losing_trades(trades),
        "win_rate": float(round_half_up(win_rate(trades), 1)),
        "total_profit": float(round_half_up(total_profit(trades), 2)),
    }
