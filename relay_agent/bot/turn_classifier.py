"""
Decides whether the caller has finished speaking.

A caller answering a reflection question often pauses mid-thought. Replying at
every pause cuts them off, so the latest exchange is shown to a small model that
answers 1 (done) or 0 (not done). Any failure is treated as done.
"""

import logging
from enum import Enum

from relay_agent.config.constants import DEFAULT_CLASSIFIER_MODEL, LOGGER_NAME
from relay_agent.models.conversation import ConversationLog, Role
from relay_agent.services.completion_client import CompletionClient

logger = logging.getLogger(LOGGER_NAME)

CLASSIFIER_SYSTEM_PROMPT = """You are analyzing a conversation between a life coach and a user.

The coach asks reflection questions like:
- What are your wins for the day?
- What are you most proud of?
- What are you going to do differently tomorrow?
- How did you do towards your goals for the week?
- What's on the agenda for tomorrow?
- What is your why?
- What are you grateful for?

Your task: Determine if the user is done talking after the coach's most recent question.

Rules:
- If the user sounds like they are mid-sentence, return 0 (user is not done)
- If the user didn't finish answering the question, return 0 (user is not done)
- If the user is saying lots of filler words, like "um", "like", "you know", return 0 (user is not done)
- If the user's response ends with "that's all", "that's it", "nothing else" or similar phrases, return 1 (user is done)
- If the user's response is just a single word, like "ok", "yeah", "yes", "no", "maybe", return 1 (user is done)
- If the user's response sounds like a complete idea, return 1 (user is done)
- Any other case, return 1 (user is done)

Return ONLY: 1 (user done) or 0 (user not done)"""


class TurnDecision(str, Enum):
    DONE = "done"
    NOT_DONE = "not_done"


def parse_decision(raw: str) -> TurnDecision:
    """Map the model's answer to a decision; anything but a clean 0 means done."""
    try:
        value = int(raw.strip())
    except (AttributeError, ValueError):
        logger.warning(f"Unparseable turn-completion answer {raw!r}, assuming done")
        return TurnDecision.DONE
    return TurnDecision.NOT_DONE if value == 0 else TurnDecision.DONE


class TurnCompletionClassifier:
    def __init__(self, client: CompletionClient, model: str = DEFAULT_CLASSIFIER_MODEL):
        self.client = client
        self.model = model

    async def is_done(self, log: ConversationLog) -> TurnDecision:
        """
        Decide whether the user has finished their turn.

        Args:
            log: The aggregated conversation log

        Returns:
            TurnDecision.DONE when there is nothing to wait for, the model says
            so, or the model could not be consulted
        """
        last_assistant = log.last_turn(Role.ASSISTANT)
        last_user = log.last_turn(Role.USER)
        if last_assistant is None or last_user is None:
            return TurnDecision.DONE

        messages = [
            {"role": "system", "content": CLASSIFIER_SYSTEM_PROMPT},
            {
                "role": "user",
                "content": (
                    "Analyze this conversation:\n\n"
                    f"Coach's last message: \"{last_assistant.content}\"\n\n"
                    f"User's last message: \"{last_user.content}\"\n\n"
                    "Is the user done talking? Return 1 or 0."
                ),
            },
        ]

        try:
            raw = await self.client.complete(
                messages, model=self.model, max_tokens=5, temperature=0
            )
        except Exception as e:
            logger.error(f"Error determining if user is done talking: {e}")
            return TurnDecision.DONE

        decision = parse_decision(raw)
        logger.info("User DONE" if decision == TurnDecision.DONE else "User NOT DONE")
        return decision
