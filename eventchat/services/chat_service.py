import logging
from typing import Dict, List, Optional

from eventchat.repositories.message_repository import MessageRepository
from eventchat.repositories.user_repository import UserRepository
from eventchat.schemas.message import ConversationSummary, ConversationThread, MessageOut
from eventchat.schemas.user import UserPublic
from eventchat.utils.errors import NotFoundError, ValidationError
from eventchat.utils.notifications import RealtimeNotifier


logger = logging.getLogger(__name__)


class ChatService:
    """Direct messages between two users and the per-correspondent inbox."""

    def __init__(
        self,
        message_repo: MessageRepository,
        user_repo: UserRepository,
        notifier: Optional[RealtimeNotifier] = None,
    ) -> None:
        self._message_repo = message_repo
        self._user_repo = user_repo
        self._notifier = notifier

    async def list_conversations(self, user_id: str) -> List[ConversationSummary]:
        """One summary per correspondent, most recently active first.

        The last message comes from a single newest-first pass (first message
        seen per correspondent wins). The unread count is queried separately
        per correspondent so it covers every unread message, not only those
        the pass happened to visit. Correspondents whose profile no longer
        resolves are left out.
        """
        messages = await self._message_repo.list_for_participant(user_id)
        # stable, so equal timestamps keep the repository's _id tie-break
        messages = sorted(messages, key=lambda m: m["created_at"], reverse=True)

        last_messages: Dict[str, dict] = {}
        for message in messages:
            other_id = message["recipient_id"] if message["sender_id"] == user_id else message["sender_id"]
            if other_id not in last_messages:
                last_messages[other_id] = message

        conversations: List[ConversationSummary] = []
        for other_id, last_message in last_messages.items():
            user = await self._user_repo.get_user_by_id(other_id)
            if user is None:
                logger.debug("Skipping conversation with missing user %s", other_id)
                continue
            unread_count = await self._message_repo.count_unread(sender_id=other_id, recipient_id=user_id)
            conversations.append(
                ConversationSummary(
                    user_id=other_id,
                    user=UserPublic.from_document(user),
                    last_message=MessageOut.from_document(last_message),
                    unread_count=unread_count,
                )
            )

        conversations.sort(key=lambda c: c.last_message.created_at, reverse=True)
        return conversations

    async def get_thread(self, user_id: str, other_user_id: str) -> ConversationThread:
        other = await self._user_repo.get_user_by_id(other_user_id)
        if other is None:
            raise NotFoundError("User not found")

        marked = await self._message_repo.mark_read(sender_id=other_user_id, recipient_id=user_id)
        if marked:
            logger.debug("Marked %d messages from %s to %s as read", marked, other_user_id, user_id)

        messages = await self._message_repo.list_between(user_id, other_user_id)
        return ConversationThread(
            messages=[MessageOut.from_document(m) for m in messages],
            user=UserPublic.from_document(other),
        )

    async def send_message(self, sender_id: str, recipient_id: str, content: str) -> MessageOut:
        if sender_id == recipient_id:
            raise ValidationError("Cannot send message to yourself")
        if not content or not content.strip():
            raise ValidationError("Message content cannot be empty")
        recipient = await self._user_repo.get_user_by_id(recipient_id)
        if recipient is None:
            raise NotFoundError("Recipient user not found")

        saved = await self._message_repo.save_message(
            sender_id=sender_id,
            recipient_id=recipient_id,
            content=content.strip(),
        )
        message = MessageOut.from_document(saved)
        logger.info("Message %s sent from %s to %s", message.id, sender_id, recipient_id)

        if self._notifier is not None:
            await self._notify_message(message)
        return message

    async def _notify_message(self, message: MessageOut) -> None:
        try:
            sender = await self._user_repo.get_user_by_id(message.sender_id)
            sender_name = (sender or {}).get("username") or (sender or {}).get("email") or "Unknown"
            await self._notifier.notify_users(
                [message.recipient_id, message.sender_id],
                "user_message",
                {
                    "message_id": message.id,
                    "sender_id": message.sender_id,
                    "sender_username": sender_name,
                    "recipient_id": message.recipient_id,
                    "message": message.content,
                    "timestamp": message.created_at.isoformat(),
                },
            )
        except Exception:
            logger.warning("Could not notify participants of message %s", message.id, exc_info=True)
