"""
Utterance aggregation.

ConversationRelay delivers one prompt per pause in the caller's speech, so a single
answer often arrives as several user turns. Before deciding whether to reply, the
user turns that followed the assistant's last turn are merged into one.
"""

import logging

from relay_agent.config.constants import LOGGER_NAME
from relay_agent.models.conversation import ConversationLog, Role, Turn

logger = logging.getLogger(LOGGER_NAME)


def aggregate_utterances(
    log: ConversationLog, include_opening: bool = False
) -> ConversationLog:
    """
    Collapse the user turns after the most recent assistant turn into one.

    Their contents are joined with a single space, in order. The log is returned
    unchanged when there is no assistant turn or fewer than two user turns follow
    it. Running this on its own output is a no-op.

    Args:
        log: The conversation log
        include_opening: When there is no assistant turn yet, treat the start of
            the conversation (after the system turn) as the boundary instead of
            leaving the log alone

    Returns:
        The collapsed log (a new object), or the input log when nothing changes
    """
    boundary = log.last_index(Role.ASSISTANT)
    if boundary == -1:
        if not include_opening:
            return log
        boundary = 0 if (not log.is_empty() and log.turns[0].role == Role.SYSTEM) else -1

    tail = log.turns[boundary + 1:]
    user_contents = [turn.content for turn in tail if turn.role == Role.USER]
    if len(user_contents) < 2:
        return log

    combined = " ".join(user_contents)
    turns = [turn.model_copy() for turn in log.turns[: boundary + 1]]
    turns.append(Turn(role=Role.USER, content=combined))
    logger.info(f"Combined {len(user_contents)} user messages into one: \"{combined}\"")
    return ConversationLog(turns=turns)
