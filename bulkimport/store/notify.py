from __future__ import annotations

import logging

from .base import Invitation

"""Invitation notifier used by the CLI.

The CLI has no mail transport; it logs the invitation code so the operator can pass it
on. Anything implementing InvitationNotifier.send_invitation can replace it.
"""

logger = logging.getLogger(__name__)

__all__ = [
    "LogInvitationNotifier",
]


class LogInvitationNotifier:
    def __init__(self) -> None:
        self.sent: list[Invitation] = []

    async def send_invitation(self, invitation: Invitation) -> None:
        self.sent.append(invitation)
        logger.info(
            "invitation email=%s role=%s code=%s expires=%s",
            invitation.email,
            invitation.role,
            invitation.invitation_code,
            invitation.expires_at.date().isoformat(),
        )
