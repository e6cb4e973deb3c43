from datetime import datetime
from typing import TypedDict


class MessageDocument(TypedDict, total=False):
    _id: str
    sender_id: str
    recipient_id: str
    content: str
    # flips false -> true only, when the recipient opens the thread
    is_read: bool
    created_at: datetime
