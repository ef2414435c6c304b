from typing import Optional, Sequence

import requests

from metareport.config.logging import logger
from metareport.config.options import EmailOptions
from metareport.core.exceptions import DeliveryError
from metareport.core.interfaces import ReportSender

class SendGridEmailClient(ReportSender):
    API_URL = "https://api.sendgrid.com/v3/mail/send"
    SUCCESS_STATUS_CODES = (200, 201, 202)

    def __init__(self, options: EmailOptions, session: Optional[requests.Session] = None,
                 timeout: float = 10.0):
        self.options = options
        self.session = session or requests.Session()
        self.timeout = timeout

    def build_payload(self, subject: str, plain_text: str, html: str, recipients: Sequence[str]) -> dict:
        sender = {"email": self.options.from_address}
        if self.options.from_name:
            sender["name"] = self.options.from_name
        return {
            "personalizations": [{"to": [{"email": address} for address in recipients]}],
            "from": sender,
            "subject": subject,
            # SendGrid requires text/plain before text/html
            "content": [
                {"type": "text/plain", "value": plain_text},
                {"type": "text/html", "value": html},
            ],
        }

    def send(self, subject: str, plain_text: str, html: str, recipients: Sequence[str]) -> bool:
        if not recipients:
            logger.error("No recipients configured for email")
            return False
        if not self.options.api_key:
            logger.error("SENDGRID_API_KEY is not set. Cannot send email.")
            return False

        logger.info(f"Preparing email report for {len(recipients)} recipients: {', '.join(recipients)}")
        headers = {
            "Authorization": f"Bearer {self.options.api_key}",
            "Content-Type": "application/json",
        }
        payload = self.build_payload(subject, plain_text, html, recipients)

        try:
            response = self.session.post(self.API_URL, headers=headers, json=payload, timeout=self.timeout)
        except requests.exceptions.RequestException as e:
            logger.error(f"Exception occurred while sending email: {e}")
            raise DeliveryError(f"Failed to reach SendGrid: {e}")

        if response.status_code in self.SUCCESS_STATUS_CODES:
            logger.info(f"Email sent successfully to {len(recipients)} recipients")
            return True

        logger.error(f"Failed to send email. Status: {response.status_code}, Body: {response.text}")
        return False
