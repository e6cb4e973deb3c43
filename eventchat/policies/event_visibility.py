import json
import logging
from typing import Any, FrozenSet, Mapping, Optional

from eventchat.models.event import EventVisibility
from eventchat.models.user import ELEVATED_ROLES, UserRole


logger = logging.getLogger(__name__)


def parse_allowed_user_ids(raw: Optional[str]) -> FrozenSet[str]:
    """Decode a stored allow-list.

    Anything that is not a JSON array of ids decodes to an empty set. A
    corrupt allow-list must never grant access nor stop the caller from
    checking ownership and role, so this never raises.
    """
    if not raw:
        return frozenset()
    try:
        decoded = json.loads(raw)
    except (TypeError, ValueError):
        logger.warning("Ignoring unparseable allow-list: %r", raw)
        return frozenset()
    if not isinstance(decoded, list):
        logger.warning("Ignoring allow-list that is not a list: %r", raw)
        return frozenset()
    return frozenset(str(item) for item in decoded if isinstance(item, (str, int)))


def serialize_allowed_user_ids(user_ids) -> Optional[str]:
    if not user_ids:
        return None
    return json.dumps(list(dict.fromkeys(user_ids)))


def _is_elevated(role: Any) -> bool:
    try:
        return UserRole(role) in ELEVATED_ROLES
    except ValueError:
        return False


class VisibilityPolicy:
    """Who may see and change a calendar event."""

    def can_view(self, event: Mapping[str, Any], actor_id: str, actor_role: Any) -> bool:
        visibility = event.get("visibility")
        is_owner = event.get("created_by") == actor_id

        if visibility == EventVisibility.PRIVATE.value:
            return is_owner
        if visibility == EventVisibility.PUBLIC.value:
            return True
        if visibility == EventVisibility.RESTRICTED.value:
            if is_owner or _is_elevated(actor_role):
                return True
            return actor_id in parse_allowed_user_ids(event.get("allowed_user_ids"))
        return False

    def can_modify(self, event: Mapping[str, Any], actor_id: str, actor_role: Any) -> bool:
        # tier plays no part here
        return event.get("created_by") == actor_id or _is_elevated(actor_role)
