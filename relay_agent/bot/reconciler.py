"""
Interruption reconciliation.

When the caller talks over the assistant, ConversationRelay reports the text that
was actually played before the interruption. The log is rewritten so the
interrupted assistant turn ends where the caller stopped listening, and any later
assistant turns, which the caller never heard, are dropped.
"""

import logging

from relay_agent.config.constants import LOGGER_NAME
from relay_agent.models.conversation import ConversationLog, Role

logger = logging.getLogger(LOGGER_NAME)


def find_interrupted_turn(log: ConversationLog, spoken_prefix: str) -> int:
    """Index of the first assistant turn containing the spoken text, or -1."""
    if not spoken_prefix or not spoken_prefix.strip():
        return -1
    for index, turn in enumerate(log.turns):
        if turn.role == Role.ASSISTANT and spoken_prefix in turn.content:
            return index
    return -1


def reconcile_interruption(log: ConversationLog, spoken_prefix: str) -> ConversationLog:
    """
    Truncate the interrupted assistant turn and drop the assistant turns after it.

    The first assistant turn (from the start of the log) whose content contains
    spoken_prefix is cut right after the first occurrence of spoken_prefix. User
    turns are never removed.

    Args:
        log: The conversation log
        spoken_prefix: Assistant text heard by the caller before interrupting

    Returns:
        The reconciled log (a new object), or the input log when nothing matches
    """
    interrupted_index = find_interrupted_turn(log, spoken_prefix)
    if interrupted_index == -1:
        logger.info("Interrupted text not found in any assistant turn, nothing to reconcile")
        return log

    interrupted = log.turns[interrupted_index]
    cut = interrupted.content.index(spoken_prefix) + len(spoken_prefix)

    turns = []
    for index, turn in enumerate(log.turns):
        if index == interrupted_index:
            turns.append(turn.model_copy(update={"content": turn.content[:cut]}))
        elif index > interrupted_index and turn.role == Role.ASSISTANT:
            continue
        else:
            turns.append(turn.model_copy())

    dropped = len(log.turns) - len(turns)
    logger.info(
        f"Truncated assistant turn {interrupted_index} to {cut} characters"
        + (f", dropped {dropped} later assistant turn(s)" if dropped else "")
    )
    return ConversationLog(turns=turns)
