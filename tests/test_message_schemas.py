"""
Unit tests for the message schemas.

These tests validate that the Pydantic models correctly validate ConversationRelay
message data and serialize outbound messages in the expected wire format.
"""

import json

import pytest
from pydantic import ValidationError

from relay_agent.models.message_schemas import (
    DtmfMessage,
    ErrorReportMessage,
    InterruptMessage,
    PromptMessage,
    SetupMessage,
    end_of_turn,
    error_notice,
    partial_text,
)


class TestSetupMessage:
    """Tests for the setup message."""

    def test_valid_setup(self):
        message = SetupMessage(
            **{
                "type": "setup",
                "callSid": "CA123",
                "sessionId": "VX456",
                "from": "+15555550100",
                "to": "+15555550199",
            }
        )
        assert message.callSid == "CA123"
        assert message.from_ == "+15555550100"
        assert message.caller_identity == "+15555550100"

    def test_phone_number_takes_precedence(self):
        message = SetupMessage(
            type="setup", callSid="CA123", phoneNumber="+15555550111", from_="+15555550100"
        )
        assert message.caller_identity == "+15555550111"

    def test_default_caller_identity(self):
        message = SetupMessage(type="setup", callSid="CA123")
        assert message.caller_identity == "default"

    def test_empty_call_sid(self):
        with pytest.raises(ValidationError):
            SetupMessage(type="setup", callSid="  ")

    def test_missing_call_sid(self):
        with pytest.raises(ValidationError):
            SetupMessage(type="setup")

    def test_wrong_type(self):
        with pytest.raises(ValidationError):
            SetupMessage(type="prompt", callSid="CA123")


class TestSpeechMessages:
    """Tests for prompt and interrupt messages."""

    def test_prompt(self):
        message = PromptMessage(type="prompt", voicePrompt="I walked the dog", lang="en-US")
        assert message.voicePrompt == "I walked the dog"
        assert message.last is True

    def test_prompt_requires_voice_prompt(self):
        with pytest.raises(ValidationError):
            PromptMessage(type="prompt")

    def test_interrupt_defaults(self):
        message = InterruptMessage(type="interrupt")
        assert message.utteranceUntilInterrupt == ""
        assert message.durationUntilInterruptMs is None


class TestActivityMessages:
    """Tests for dtmf and error messages."""

    @pytest.mark.parametrize("digit", ["0", "9", "*", "#", "A"])
    def test_valid_digits(self, digit):
        assert DtmfMessage(type="dtmf", digit=digit).digit == digit

    @pytest.mark.parametrize("digit", ["", "12", "x"])
    def test_invalid_digits(self, digit):
        with pytest.raises(ValidationError):
            DtmfMessage(type="dtmf", digit=digit)

    def test_error_report(self):
        message = ErrorReportMessage(type="error", description="Speech model failed")
        assert message.description == "Speech model failed"


class TestOutboundMessages:
    """Tests for the messages sent to ConversationRelay."""

    def test_partial_text_wire_format(self):
        assert json.loads(partial_text("Great ").model_dump_json()) == {
            "type": "text",
            "token": "Great ",
            "last": False,
        }

    def test_end_of_turn_wire_format(self):
        assert json.loads(end_of_turn().model_dump_json()) == {
            "type": "text",
            "token": "",
            "last": True,
        }
        assert end_of_turn("Whole reply").token == "Whole reply"

    def test_error_notice_wire_format(self):
        assert json.loads(error_notice("oops").model_dump_json()) == {
            "type": "error",
            "message": "oops",
        }
