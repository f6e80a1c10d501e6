"""
Confirmation email notifications.

Sent from a background task after the registration response has been
built. Delivery errors are logged here and never propagate: the caller does
not wait for the result and there are no retries.
"""

import logging

from clients.email_client import EmailGatewayClient

logger = logging.getLogger(__name__)


class ConfirmationNotifier:
    """Fire-and-forget delivery of confirmation links."""

    def __init__(self, email_client: EmailGatewayClient | None, app_name: str):
        self._email_client = email_client
        self._app_name = app_name

    def send_confirmation(self, to_email: str, display_name: str, confirmation_link: str) -> None:
        """Deliver the confirmation link. Never raises."""
        if self._email_client is None:
            logger.warning(f"Email gateway not configured. Confirmation link for {to_email}: {confirmation_link}")
            return

        try:
            self._email_client.send_confirmation(
                email=to_email,
                name=display_name,
                confirmation_link=confirmation_link,
                app_name=self._app_name,
            )
        except Exception:
            logger.exception(f"Failed to send confirmation email to {to_email}")
            return

        logger.info(f"Confirmation email sent to {to_email}")
