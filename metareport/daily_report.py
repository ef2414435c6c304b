import sys
from threading import Event
from typing import Optional, Sequence
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from metareport.config.settings import settings
from metareport.config.logging import logger
from metareport.config.options import EmailOptions, MetaApiOptions
from metareport.core.exceptions import AppError, ConfigurationError, DeliveryError, ReportCancelledError
from metareport.core.interfaces import ReportSender
from metareport.core.models import AggregatedReport
from metareport.infrastructure.metaapi.client import MetaApiClient
from metareport.infrastructure.sendgrid_client import SendGridEmailClient
from metareport.services.report_builder import ReportBuilder
from metareport.services.report_formatter import ReportFormatter

def run_report(builder: ReportBuilder, formatter: ReportFormatter, sender: ReportSender,
               recipients: Sequence[str], cancel_event: Optional[Event] = None,
               dry_run: bool = False) -> AggregatedReport:
    """
    One full cycle: build, render, deliver.
    Upstream and cancellation errors propagate unchanged; a rejected
    delivery raises DeliveryError.
    """
    report = builder.build(cancel_event)

    subject = formatter.build_subject(report)
    plain_text = formatter.build_plain_text_content(report)
    html = formatter.build_html_content(report)

    if dry_run:
        logger.info(f"[DRY RUN] Subject: {subject}\n{plain_text}")
        return report

    if not sender.send(subject, plain_text, html, recipients):
        raise DeliveryError("Failed to send daily report email")

    logger.info("Daily report email sent successfully")
    return report

def load_time_zone(name: str) -> ZoneInfo:
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning(f"Invalid timezone {name}, falling back to UTC")
        return ZoneInfo("UTC")

def create_builder() -> ReportBuilder:
    return ReportBuilder(MetaApiClient(MetaApiOptions.from_settings(settings)))

def create_formatter() -> ReportFormatter:
    if settings is None:
        raise ConfigurationError("Settings are not loaded")
    return ReportFormatter(load_time_zone(settings.TZ))

def main(cancel_event: Optional[Event] = None) -> int:
    logger.info("Starting Daily Trading Report task...")

    try:
        email_options = EmailOptions.from_settings(settings)
        run_report(
            builder=create_builder(),
            formatter=create_formatter(),
            sender=SendGridEmailClient(email_options),
            recipients=email_options.get_recipients(),
            cancel_event=cancel_event,
            dry_run=settings.DRY_RUN,
        )
    except ReportCancelledError:
        logger.warning("Daily Trading Report cancelled.")
        return 130
    except AppError as e:
        logger.error(f"Daily Trading Report failed: {type(e).__name__}: {e}")
        return 1

    logger.info("Daily Trading Report task completed.")
    return 0

if __name__ == "__main__":
    sys.exit(main())
