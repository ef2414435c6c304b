import argparse
import json
import sys
from threading import Event

from metareport.config.logging import logger
from metareport.core.exceptions import AppError, ReportCancelledError
from metareport import daily_report

def preview(html: bool = False) -> None:
    """產生報表並印出，不寄信 (用於檢查格式)"""
    report = daily_report.create_builder().build()
    formatter = daily_report.create_formatter()
    if html:
        print(formatter.build_html_content(report))
    else:
        print(formatter.build_plain_text_content(report))

def summary() -> None:
    """印出 JSON 格式的摘要數字"""
    report = daily_report.create_builder().build()
    print(json.dumps(report.summary(), ensure_ascii=False, indent=2))

def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="MetaReport daily trading report")
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Command: send (排程器每天呼叫一次)
    subparsers.add_parser("send", help="Generate the report and e-mail it")

    # Command: preview
    preview_parser = subparsers.add_parser("preview", help="Print the report without sending it")
    preview_parser.add_argument("--html", action="store_true", help="Print the HTML version")

    # Command: summary
    subparsers.add_parser("summary", help="Print the headline figures as JSON")

    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    cancel_event = Event()
    try:
        if args.command == "send":
            return daily_report.main(cancel_event)
        if args.command == "preview":
            preview(html=args.html)
        elif args.command == "summary":
            summary()
    except KeyboardInterrupt:
        cancel_event.set()
        logger.warning("Interrupted by user.")
        return 130
    except ReportCancelledError as e:
        logger.warning(f"Cancelled: {e}")
        return 130
    except AppError as e:
        logger.error(f"{args.command} failed: {type(e).__name__}: {e}")
        return 1
    return 0

if __name__ == "__main__":
    sys.exit(main())
