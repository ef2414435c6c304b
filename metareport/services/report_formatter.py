from datetime import datetime, timezone
from decimal import Decimal
from html import escape
from typing import Callable, List, Union
from zoneinfo import ZoneInfo

from metareport.core.models import AggregatedReport, Deal
from metareport.services.metrics import round_half_up

PROFIT_COLOR = "#28a745"
LOSS_COLOR = "#dc3545"
WARNING_COLOR = "#ffc107"

# zone -> (standard, daylight)
TIME_ZONE_ABBREVIATIONS = {
    "America/Bogota": ("COT", "COT"),
    "America/New_York": ("EST", "EDT"),
    "America/Los_Angeles": ("PST", "PDT"),
    "America/Chicago": ("CST", "CDT"),
    "America/Denver": ("MST", "MDT"),
    "Europe/London": ("GMT", "BST"),
    "Europe/Berlin": ("CET", "CEST"),
    "Europe/Paris": ("CET", "CEST"),
    "Europe/Madrid": ("CET", "CEST"),
    "Europe/Rome": ("CET", "CEST"),
    "Europe/Amsterdam": ("CET", "CEST"),
    "Asia/Tokyo": ("JST", "JST"),
    "UTC": ("UTC", "UTC"),
    "Etc/UTC": ("UTC", "UTC"),
}

# Fixed English names keep the output independent of the process locale
_DAY_NAMES = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")
_MONTH_NAMES = ("January", "February", "March", "April", "May", "June", "July",
                "August", "September", "October", "November", "December")

def _utc_now() -> datetime:
    return datetime.now(timezone.utc)

def _money(value: Decimal) -> str:
    return f"{round_half_up(value, 2):,.2f}"

def _percent(value: Decimal) -> str:
    return f"{round_half_up(value, 1):.1f}"

def _volume(value: Decimal) -> str:
    return f"{value.normalize():f}"

def _profit_color(value: Decimal) -> str:
    return PROFIT_COLOR if value >= 0 else LOSS_COLOR

def _newest_first(report: AggregatedReport) -> List[Deal]:
    return sorted(report.trading_deals, key=lambda d: d.time, reverse=True)

class ReportFormatter:
    """
    Renders an AggregatedReport as plain text and as an HTML e-mail body.

    All timestamps are converted from UTC to the time zone given at
    construction. Output depends only on the report and that zone; the
    clock is read solely to decide whether the zone is currently on
    daylight saving time for its abbreviation.
    """

    def __init__(self, time_zone: Union[str, ZoneInfo] = "UTC",
                 clock: Callable[[], datetime] = _utc_now):
        self.time_zone = time_zone if isinstance(time_zone, ZoneInfo) else ZoneInfo(time_zone)
        self.clock = clock

    def to_local_time(self, utc_time: datetime) -> datetime:
        if utc_time.tzinfo is None:
            utc_time = utc_time.replace(tzinfo=timezone.utc)
        return utc_time.astimezone(self.time_zone)

    def time_zone_abbreviation(self) -> str:
        local_now = self.clock().astimezone(self.time_zone)
        is_dst = bool(local_now.dst())

        known = TIME_ZONE_ABBREVIATIONS.get(self.time_zone.key)
        if known:
            return known[1] if is_dst else known[0]

        standard_name = self._standard_name(local_now.year)
        if standard_name and len(standard_name) <= 5:
            return standard_name
        if self.time_zone.key:
            return self.time_zone.key
        # ZoneInfo.from_file() zones have no key
        return local_now.tzname() or local_now.strftime("UTC%z")

    def _standard_name(self, year: int) -> str:
        # Whichever of January / July is not on DST carries the standard name
        for month in (1, 7):
            sample = datetime(year, month, 1, 12, tzinfo=self.time_zone)
            if not sample.dst():
                return sample.tzname() or ""
        return ""

    def build_subject(self, report: AggregatedReport) -> str:
        local_date = self.to_local_time(report.generated_at).strftime("%Y-%m-%d")
        return f"📊 MetaReport - Daily Trading Summary ({local_date})"

    def build_plain_text_content(self, report: AggregatedReport) -> str:
        account = report.account
        currency = account.currency
        tz = self.time_zone_abbreviation()
        generated_at = self.to_local_time(report.generated_at)
        period_start = self.to_local_time(report.period_start)
        period_end = self.to_local_time(report.period_end)

        lines = ["=== MetaReport - Daily Trading Summary ===", ""]
        lines.append(f"Report Generated: {generated_at:%Y-%m-%d %H:%M:%S} ({tz})")
        lines.append(f"Period: {period_start:%Y-%m-%d %H:%M} - {period_end:%Y-%m-%d %H:%M} ({tz})")
        lines.append("")

        lines.append("--- Account Summary ---")
        lines.append(f"Account: {account.name} ({account.login})")
        lines.append(f"Broker: {account.broker}")
        lines.append(f"Server: {account.server}")
        lines.append(f"Platform: {(account.platform or '').upper()}")
        lines.append("")
        lines.append(f"Balance: {_money(account.balance)} {currency}")
        lines.append(f"Equity: {_money(account.equity)} {currency}")
        lines.append(f"Free Margin: {_money(account.free_margin)} {currency}")
        lines.append(f"Leverage: 1:{account.leverage}")
        lines.append("")

        lines.append("--- Trading Summary ---")
        lines.append(f"Total Trades: {report.trade_count}")
        lines.append(f"Winning Trades: {report.winning_trades}")
        lines.append(f"Losing Trades: {report.losing_trades}")
        lines.append(f"Win Rate: {_percent(report.win_rate)}%")
        lines.append("")
        lines.append(f"Total Profit/Loss: {_money(report.total_profit)} {currency}")
        lines.append("")

        lines.append(f"--- All Deals ({report.trade_count} total) ---")
        for deal in _newest_first(report):
            deal_time = self.to_local_time(deal.time)
            lines.append(
                f"  {deal_time:%H:%M:%S} | {deal.symbol} | {deal.type} | "
                f"{_volume(deal.volume)} lots | P/L: {_money(deal.net_profit)}"
            )

        lines.append("")
        lines.append("---")
        lines.append("This report was generated automatically by MetaReport.")
        return "\n".join(lines) + "\n"

    def build_html_content(self, report: AggregatedReport) -> str:
        account = report.account
        currency = escape(account.currency)
        tz = escape(self.time_zone_abbreviation())
        generated_at = self.to_local_time(report.generated_at)
        generated_label = (
            f"{_DAY_NAMES[generated_at.weekday()]}, {_MONTH_NAMES[generated_at.month - 1]} "
            f"{generated_at.day}, {generated_at.year} at {generated_at:%H:%M}"
        )

        win_rate = report.win_rate
        if win_rate >= 50:
            win_rate_color = PROFIT_COLOR
        elif win_rate >= 30:
            win_rate_color = WARNING_COLOR
        else:
            win_rate_color = LOSS_COLOR

        section = 'style="background: white; padding: 20px; border: 1px solid #dee2e6; border-top: none;"'
        heading = 'style="color: #333; border-bottom: 2px solid #667eea; padding-bottom: 10px; margin-top: 0;"'
        stat_box = 'style="text-align: center; padding: 15px; background: #f8f9fa; border-radius: 8px;"'
        label = 'style="color: #666; font-size: 12px;"'

        parts = [
            "<!DOCTYPE html>",
            "<html>",
            "<head>",
            '    <meta charset="utf-8">',
            '    <meta name="viewport" content="width=device-width, initial-scale=1.0">',
            "    <title>MetaReport - Daily Trading Summary</title>",
            "</head>",
            '<body style="font-family: -apple-system, BlinkMacSystemFont, \'Segoe UI\', Roboto, '
            '\'Helvetica Neue\', Arial, sans-serif; line-height: 1.6; color: #333; max-width: 600px; '
            'margin: 0 auto; padding: 20px;">',
            '    <div style="background: linear-gradient(135deg, #667eea 0%, #764ba2 100%); padding: 30px; '
            'border-radius: 10px 10px 0 0;">',
            '        <h1 style="color: white; margin: 0; font-size: 24px;">📊 MetaReport</h1>',
            '        <p style="color: rgba(255,255,255,0.9); margin: 10px 0 0 0;">Daily Trading Summary</p>',
            "    </div>",
            '    <div style="background: #f8f9fa; padding: 15px 20px; border-left: 1px solid #dee2e6; '
            'border-right: 1px solid #dee2e6;">',
            f'        <p style="margin: 0; color: #6c757d; font-size: 14px;">📅 {generated_label} ({tz})</p>',
            "    </div>",
            # Account
            '    <div style="background: white; padding: 20px; border: 1px solid #dee2e6;">',
            f"        <h2 {heading}>Account Summary</h2>",
            '        <div style="display: grid; gap: 10px;">',
            f"            <div><strong>Account:</strong> {escape(account.name)} ({escape(account.login)})</div>",
            f"            <div><strong>Broker:</strong> {escape(account.broker)}</div>",
            f"            <div><strong>Server:</strong> {escape(account.server)}</div>",
            f"            <div><strong>Platform:</strong> {escape((account.platform or '').upper())}</div>",
            f"            <div><strong>Free Margin:</strong> {_money(account.free_margin)} {currency}</div>",
            f"            <div><strong>Leverage:</strong> 1:{account.leverage}</div>",
            "        </div>",
            '        <div style="display: grid; grid-template-columns: repeat(2, 1fr); gap: 15px; margin-top: 20px;">',
            '            <div style="background: #e3f2fd; padding: 15px; border-radius: 8px; text-align: center;">',
            f'                <div style="font-size: 24px; font-weight: bold; color: #1976d2;">{_money(account.balance)}</div>',
            f"                <div {label}>Balance ({currency})</div>",
            "            </div>",
            '            <div style="background: #e8f5e9; padding: 15px; border-radius: 8px; text-align: center;">',
            f'                <div style="font-size: 24px; font-weight: bold; color: #388e3c;">{_money(account.equity)}</div>',
            f"                <div {label}>Equity ({currency})</div>",
            "            </div>",
            "        </div>",
            "    </div>",
            # Performance
            f"    <div {section}>",
            f"        <h2 {heading}>Trading Performance</h2>",
            '        <div style="display: grid; grid-template-columns: repeat(3, 1fr); gap: 15px;">',
            f"            <div {stat_box}>",
            f'                <div style="font-size: 28px; font-weight: bold; color: {_profit_color(report.total_profit)};">'
            f"{_money(report.total_profit)}</div>",
            f"                <div {label}>Total P/L ({currency})</div>",
            "            </div>",
            f"            <div {stat_box}>",
            f'                <div style="font-size: 28px; font-weight: bold;">{report.trade_count}</div>',
            f"                <div {label}>Total Trades</div>",
            "            </div>",
            f"            <div {stat_box}>",
            f'                <div style="font-size: 28px; font-weight: bold; color: {win_rate_color};">{_percent(win_rate)}%</div>',
            f"                <div {label}>Win Rate</div>",
            "            </div>",
            "        </div>",
            '        <div style="display: grid; grid-template-columns: repeat(2, 1fr); gap: 15px; margin-top: 15px;">',
            '            <div style="text-align: center; padding: 10px; background: #e8f5e9; border-radius: 8px;">',
            f'                <div style="font-size: 18px; font-weight: bold; color: {PROFIT_COLOR};">'
            f"{report.winning_trades} wins</div>",
            "            </div>",
            '            <div style="text-align: center; padding: 10px; background: #ffebee; border-radius: 8px;">',
            f'                <div style="font-size: 18px; font-weight: bold; color: {LOSS_COLOR};">'
            f"{report.losing_trades} losses</div>",
            "            </div>",
            "        </div>",
            "    </div>",
            # Deals
            f"    <div {section}>",
            f"        <h2 {heading}>Deals (Last 24 Hours)</h2>",
        ]
        parts.extend(self._deals_table(report, tz))
        parts.extend([
            "    </div>",
            '    <div style="background: #f8f9fa; padding: 20px; border: 1px solid #dee2e6; border-top: none; '
            'border-radius: 0 0 10px 10px; text-align: center;">',
            '        <p style="margin: 0; color: #6c757d; font-size: 12px;">'
            "This report was generated automatically by MetaReport</p>",
            "    </div>",
            "</body>",
            "</html>",
        ])
        return "\n".join(parts) + "\n"

    def _deals_table(self, report: AggregatedReport, tz: str) -> List[str]:
        deals = _newest_first(report)
        if not deals:
            return ['        <p style="color: #6c757d; text-align: center;">No deals in this period</p>']

        th = 'style="padding: 8px; text-align: {align}; border-bottom: 2px solid #dee2e6;"'
        td = "padding: 8px; border-bottom: 1px solid #dee2e6;"
        rows = [
            '        <table style="width: 100%; border-collapse: collapse; margin-top: 10px;">',
            '            <tr style="background: #f8f9fa;">'
            f'<th {th.format(align="left")}>Time ({tz})</th>'
            f'<th {th.format(align="left")}>Symbol</th>'
            f'<th {th.format(align="left")}>Type</th>'
            f'<th {th.format(align="right")}>Volume</th>'
            f'<th {th.format(align="right")}>P/L</th></tr>',
        ]
        for deal in deals:
            deal_time = self.to_local_time(deal.time)
            rows.append(
                "            <tr>"
                f'<td style="{td}">{deal_time:%H:%M:%S}</td>'
                f'<td style="{td}">{escape(deal.symbol)}</td>'
                f'<td style="{td}">{escape(deal.type or "")}</td>'
                f'<td style="{td} text-align: right;">{_volume(deal.volume)}</td>'
                f'<td style="{td} text-align: right; color: {_profit_color(deal.net_profit)};">'
                f"{_money(deal.net_profit)}</td>"
                "</tr>"
            )
        rows.append("        </table>")
        return rows
