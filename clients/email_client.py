"""
HTTP email gateway client.

Requests are JSON bodies signed with HMAC-SHA256 (X-Signature) and carry an
API key (X-API-Key). Nothing on the request path calls this directly;
registration hands confirmation mail to core.notifications.ConfirmationNotifier.
"""

import hashlib
import hmac
import json
import logging

import requests

logger = logging.getLogger(__name__)

SENDER = "auth"

CONFIRMATION_SUBJECT = "Confirm your email for {app_name}"
CONFIRMATION_BODY = """Hello, {name}!

Thank you for registering. Please confirm your email by opening the link below:

{link}

If you didn't register, please ignore this email.

Best regards,
{app_name}"""


class EmailGatewayError(Exception):
    """The gateway could not be reached or refused the message."""


def sign(secret: str, body: bytes) -> str:
    """Hex HMAC-SHA256 of the exact bytes sent."""
    return hmac.new(secret.encode("utf-8"), body, hashlib.sha256).hexdigest()


class EmailGatewayClient:
    """Signed POSTs to the email gateway."""

    def __init__(self, gateway_url: str, api_key: str, hmac_secret: str, timeout_seconds: int = 10):
        for name, value in (
            ("gateway_url", gateway_url),
            ("api_key", api_key),
            ("hmac_secret", hmac_secret),
        ):
            if not value:
                raise ValueError(f"{name} is required")

        self.gateway_url = gateway_url
        self.api_key = api_key
        self.hmac_secret = hmac_secret
        self.timeout_seconds = timeout_seconds

    def _post(self, payload: dict) -> requests.Response:
        body = json.dumps(payload, separators=(",", ":")).encode("utf-8")
        try:
            return requests.post(
                self.gateway_url,
                data=body,
                headers={
                    "Content-Type": "application/json",
                    "X-API-Key": self.api_key,
                    "X-Signature": sign(self.hmac_secret, body),
                },
                timeout=self.timeout_seconds,
            )
        except requests.exceptions.RequestException as e:
            logger.error(f"Email gateway unreachable at {self.gateway_url}: {e}")
            raise EmailGatewayError(f"Connection failed: {e}") from e

    @staticmethod
    def _raise_for_result(response: requests.Response) -> None:
        """Gateway success is HTTP 200 with {"success": true}."""
        try:
            result = response.json()
        except ValueError:
            logger.error(f"Email gateway returned non-JSON ({response.status_code}): {response.text[:200]}")
            raise EmailGatewayError("Invalid response from gateway")

        if response.status_code == 200 and result.get("success"):
            return
        message = result.get("message", "Unknown error")
        logger.error(f"Email gateway refused message ({response.status_code}): {message}")
        raise EmailGatewayError(f"Gateway error: {message}")

    def send_email(self, to: str, subject: str, body: str) -> None:
        """
        Send a plain-text message.

        Raises:
            EmailGatewayError: Connection failure or gateway refusal.
        """
        response = self._post({
            "type": "custom",
            "email": to,
            "subject": subject,
            "body": body,
            "sender": SENDER,
        })
        self._raise_for_result(response)
        logger.info(f"Email sent to {to}: {subject}")

    def send_confirmation(self, email: str, name: str, confirmation_link: str, app_name: str) -> None:
        """Send the address-confirmation message for a new account."""
        self.send_email(
            to=email,
            subject=CONFIRMATION_SUBJECT.format(app_name=app_name),
            body=CONFIRMATION_BODY.format(name=name, link=confirmation_link, app_name=app_name),
        )
