import pytest

from relay_agent.bot.aggregator import aggregate_utterances
from relay_agent.models.conversation import ConversationLog, Role, Turn


def make_log(*turns):
    return ConversationLog(turns=[Turn(role=role, content=content) for role, content in turns])


def test_merges_user_turns_after_last_assistant():
    log = make_log(
        (Role.SYSTEM, "sys"),
        (Role.USER, "hi"),
        (Role.ASSISTANT, "What are your wins?"),
        (Role.USER, "I finished"),
        (Role.USER, "the report"),
        (Role.USER, "on time"),
    )

    result = aggregate_utterances(log)

    assert [(t.role, t.content) for t in result.turns] == [
        (Role.SYSTEM, "sys"),
        (Role.USER, "hi"),
        (Role.ASSISTANT, "What are your wins?"),
        (Role.USER, "I finished the report on time"),
    ]


def test_input_log_is_not_mutated():
    log = make_log((Role.ASSISTANT, "Hi"), (Role.USER, "a"), (Role.USER, "b"))

    aggregate_utterances(log)

    assert len(log.turns) == 3


def test_single_user_turn_is_unchanged():
    log = make_log((Role.SYSTEM, "sys"), (Role.ASSISTANT, "Hi"), (Role.USER, "hello"))

    assert aggregate_utterances(log) is log


def test_no_assistant_turn_is_unchanged_by_default():
    log = make_log((Role.SYSTEM, "sys"), (Role.USER, "I also"), (Role.USER, "cleaned my desk"))

    assert aggregate_utterances(log) is log


def test_include_opening_merges_before_first_reply():
    log = make_log((Role.SYSTEM, "sys"), (Role.USER, "I also"), (Role.USER, "cleaned my desk"))

    result = aggregate_utterances(log, include_opening=True)

    assert [(t.role, t.content) for t in result.turns] == [
        (Role.SYSTEM, "sys"),
        (Role.USER, "I also cleaned my desk"),
    ]


def test_include_opening_without_system_turn():
    log = make_log((Role.USER, "one"), (Role.USER, "two"))

    result = aggregate_utterances(log, include_opening=True)

    assert [(t.role, t.content) for t in result.turns] == [(Role.USER, "one two")]


@pytest.mark.parametrize("include_opening", [False, True])
def test_aggregation_is_idempotent(include_opening):
    log = make_log(
        (Role.SYSTEM, "sys"),
        (Role.ASSISTANT, "Hi"),
        (Role.USER, "a"),
        (Role.USER, "b"),
    )

    once = aggregate_utterances(log, include_opening=include_opening)
    twice = aggregate_utterances(once, include_opening=include_opening)

    assert twice is once
    assert twice.turns[-1].content == "a b"


def test_empty_log():
    log = ConversationLog()

    assert aggregate_utterances(log, include_opening=True) is log
