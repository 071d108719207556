from __future__ import annotations

import logging

from claudebot_core.context import EventContext
from claudebot_core.errors import ActorKindError
from claudebot_core.gh.client import RepositoryClient

logger = logging.getLogger(__name__)


def check_human_actor(client: RepositoryClient, context: EventContext) -> None:
    """Raise ActorKindError unless the triggering account is a human user."""
    actor_type = client.get_user_type(context.actor)
    logger.debug("Actor %s has type %s", context.actor, actor_type)
    if actor_type != "User":
        raise ActorKindError(f"Workflow initiated by non-human actor: {context.actor} (type: {actor_type}).")
