import pytest

from fakes import ScriptedCompletionClient
from relay_agent.bot.turn_classifier import (
    TurnCompletionClassifier,
    TurnDecision,
    parse_decision,
)
from relay_agent.errors import CompletionError
from relay_agent.models.conversation import ConversationLog, Role, Turn


@pytest.fixture
def answered_log():
    return ConversationLog(
        turns=[
            Turn(role=Role.SYSTEM, content="sys"),
            Turn(role=Role.ASSISTANT, content="What are your wins for the day?"),
            Turn(role=Role.USER, content="Well, um, I think"),
        ]
    )


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("0", TurnDecision.NOT_DONE),
        (" 0\n", TurnDecision.NOT_DONE),
        ("1", TurnDecision.DONE),
        ("2", TurnDecision.DONE),
        ("maybe", TurnDecision.DONE),
        ("", TurnDecision.DONE),
        (None, TurnDecision.DONE),
    ],
)
def test_parse_decision(raw, expected):
    assert parse_decision(raw) == expected


@pytest.mark.asyncio
async def test_not_done_when_model_answers_zero(answered_log):
    client = ScriptedCompletionClient(responses=["0"])
    classifier = TurnCompletionClassifier(client, model="gpt-4o-mini")

    assert await classifier.is_done(answered_log) == TurnDecision.NOT_DONE

    call = client.complete_calls[0]
    assert call["model"] == "gpt-4o-mini"
    assert call["max_tokens"] == 5
    assert call["temperature"] == 0
    assert "What are your wins for the day?" in call["messages"][1]["content"]
    assert "Well, um, I think" in call["messages"][1]["content"]


@pytest.mark.asyncio
async def test_done_when_model_answers_one(answered_log):
    classifier = TurnCompletionClassifier(ScriptedCompletionClient(responses=["1"]))

    assert await classifier.is_done(answered_log) == TurnDecision.DONE


@pytest.mark.asyncio
async def test_fails_open_when_client_raises(answered_log):
    client = ScriptedCompletionClient(responses=[CompletionError("rate limited")])
    classifier = TurnCompletionClassifier(client)

    assert await classifier.is_done(answered_log) == TurnDecision.DONE


@pytest.mark.asyncio
async def test_done_without_consulting_model_before_first_reply():
    client = ScriptedCompletionClient(responses=["0"])
    classifier = TurnCompletionClassifier(client)
    log = ConversationLog(
        turns=[Turn(role=Role.SYSTEM, content="sys"), Turn(role=Role.USER, content="I")]
    )

    assert await classifier.is_done(log) == TurnDecision.DONE
    assert client.complete_calls == []
