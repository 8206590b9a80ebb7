"""
email_service.py: Outbound email
No mail transport is wired up yet: messages are written to the application log
so links can be copied out during development.
"""

import logging

from familybudget.config import CLIENT_URL

logger = logging.getLogger(__name__)


def _deliver(to: str, subject: str, body: str) -> None:
    logger.info(f"--- Email simulation ---\nTo: {to}\nSubject: {subject}\n{body}\n--- End of email ---")


def send_password_reset_email(user_email: str, reset_token: str) -> None:
    reset_link = f"{CLIENT_URL}/reset-password/{reset_token}"
    _deliver(
        user_email,
        "Password Reset Request",
        f"You requested a password reset. Click this link to reset your password: {reset_link}",
    )


def send_group_invitation_email(user_email: str, group_name: str, group_id: int, token: str) -> None:
    invite_link = f"{CLIENT_URL}/accept-invite?groupId={group_id}&token={token}"
    _deliver(
        user_email,
        f"Invitation to join {group_name}",
        f"You were invited to join the group \"{group_name}\". Accept here: {invite_link}",
    )


def send_registration_invitation_email(user_email: str, group_name: str, group_id: int, token: str) -> None:
    register_link = f"{CLIENT_URL}/register?groupId={group_id}&token={token}&email={user_email}"
    _deliver(
        user_email,
        f"Invitation to join {group_name}",
        f"You were invited to join the group \"{group_name}\". Create your account here: {register_link}",
    )
