"""Outgoing message path: validate, stamp with the sender snapshot, submit."""
from __future__ import annotations

import asyncio
import logging

from ..constants import SEND_FAILED_DETAIL, SEND_FAILED_TITLE
from ..schemas import IdentityContext, Message, MessageCreate
from .notifier import Notifier
from .profile_directory import ProfileDirectory
from .remote_store import RemoteStore

logger = logging.getLogger(__name__)


class MessageComposer:
    """Holds the pending draft and submits it to the remote collection.

    Nothing is inserted into the displayed list here; a sent message shows up
    once the feed delivers it.
    """

    def __init__(
        self,
        identity: IdentityContext,
        store: RemoteStore,
        directory: ProfileDirectory,
        notifier: Notifier,
    ) -> None:
        self._identity = identity
        self._store = store
        self._directory = directory
        self._notifier = notifier
        self.draft = ""

    def build_payload(self, text: str, image: str | None = None) -> MessageCreate:
        profile = self._directory.get(self._identity.identity)
        name = profile.display_name if profile and profile.display_name else self._identity.display_name
        return MessageCreate(
            text=text,
            image_data=image or None,
            sender_id=self._identity.identity,
            sender_name=name,
            sender_color=profile.theme_color if profile else None,
            sender_photo=profile.photo_data if profile else None,
        )

    async def send(self, text: str | None = None, image: str | None = None) -> Message | None:
        """Submit ``text`` (the current draft when omitted) and/or ``image``.

        Returns the stored message, or ``None`` when there was nothing to send
        or the message could not be stored. Any failure, including a draft the
        store would reject, raises an alert and keeps the draft.
        """
        if text is not None:
            self.draft = text
        content = self.draft
        if not content.strip() and not image:
            return None

        try:
            payload = self.build_payload(content, image)
            message = await asyncio.to_thread(self._store.add_message, payload)
        except Exception:
            logger.exception("Message submission failed for %s", self._identity.identity)
            self._notifier.alert(SEND_FAILED_TITLE, SEND_FAILED_DETAIL)
            return None

        self.draft = ""
        return message


__all__ = ["MessageComposer"]
