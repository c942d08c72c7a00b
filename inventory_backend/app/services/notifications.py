"""
Outbound user notifications.

E-mail delivery is an external collaborator. The default notifier records
that a reset was issued without ever writing the link itself.
"""

import logging

from inventory_backend.app.models.user import User

logger = logging.getLogger("inventory.notifications")


class PasswordResetNotifier:
    """Delivers password reset links to users."""

    async def send_reset_link(self, user: User, reset_url: str) -> None:
        logger.info("Password reset link issued for user %s", user.id)


reset_notifier = PasswordResetNotifier()


def get_reset_notifier() -> PasswordResetNotifier:
    """FastAPI dependency; override it to plug in real delivery."""
    return reset_notifier
