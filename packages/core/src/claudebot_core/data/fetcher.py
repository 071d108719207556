"""Fetch everything a task needs to know about its issue or pull request.

Fetched once per prepare run and shared by branch setup and prompt creation,
so the two never see different snapshots.
"""

from __future__ import annotations

import logging

from claudebot_core.context import EventContext
from claudebot_core.data.models import TaskData
from claudebot_core.gh.client import RepositoryClient

logger = logging.getLogger(__name__)


def fetch_github_data(client: RepositoryClient, context: EventContext) -> TaskData:
    number = context.entity_number
    if context.is_pr:
        context_data = client.get_pull(number)
        changed_files = client.get_pull_files(number)
        reviews = client.get_pull_reviews(number)
    else:
        context_data = client.get_issue(number)
        changed_files = []
        reviews = []

    # PR conversation comments live on the issue side of the API too.
    comments = client.get_issue_comments(number)

    logger.info(
        "Fetched #%s: %d comment(s), %d changed file(s), %d review(s)",
        number,
        len(comments),
        len(changed_files),
        len(reviews),
    )
    return TaskData(
        context_data=context_data,
        comments=comments,
        changed_files=changed_files,
        reviews=reviews,
        trigger_username=context.actor,
    )
