"""
Device token store accessor.

Reads active push tokens and deactivates tokens the push provider rejects.
Deactivation is best-effort cleanup: database errors are logged and never
propagate into the send that triggered them.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from django.db import DatabaseError
from django.utils import timezone

from notifications.models import DeviceToken

logger = logging.getLogger(__name__)


class DeviceTokenStore:
    """ORM-backed access to DeviceToken rows used by the push channel."""

    def active_tokens_for_user(self, auth_user_id: str) -> list[DeviceToken]:
        return list(
            DeviceToken.objects.filter(auth_user_id=auth_user_id, is_active=True)
        )

    def active_tokens_for_users(self, auth_user_ids: Iterable[str]) -> list[DeviceToken]:
        """Active tokens for many users, fetched with a single IN query."""
        user_ids = list(dict.fromkeys(auth_user_ids))
        if not user_ids:
            return []
        return list(
            DeviceToken.objects.filter(auth_user_id__in=user_ids, is_active=True)
        )

    def deactivate(self, token_ids: Iterable[int]) -> int:
        """
        Mark the given tokens inactive.

        Idempotent: already-inactive tokens are simply matched again.

        Returns:
            Number of rows updated (0 when the update failed)
        """
        ids = [token_id for token_id in set(token_ids) if token_id is not None]
        if not ids:
            return 0

        try:
            updated = DeviceToken.objects.filter(id__in=ids).update(
                is_active=False,
                updated_at=timezone.now(),
            )
        except DatabaseError:
            logger.exception(f"Failed to deactivate device tokens {sorted(ids)}")
            return 0

        logger.info(f"Deactivated {updated} device token(s)")
        return updated
