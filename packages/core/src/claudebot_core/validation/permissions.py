from __future__ import annotations

import logging

from claudebot_core.context import EventContext
from claudebot_core.gh.client import RepositoryClient

logger = logging.getLogger(__name__)

_WRITE_LEVELS = ("admin", "write")


def check_write_permissions(client: RepositoryClient, context: EventContext) -> bool:
    """Return True if the actor can push to the repository.

    A failed lookup raises RemoteOperationError; it is never read as "allowed".
    """
    permission = client.get_permission_level(context.actor)
    logger.info("Permission level for %s: %s", context.actor, permission)
    return permission in _WRITE_LEVELS
