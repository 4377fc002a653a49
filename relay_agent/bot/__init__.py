"""
Bot module implementing the conversation turn logic of the coaching agent.

This module turns the stream of ConversationRelay events for a call into a
conversation log and assistant replies generated with OpenAI chat completions.

Key components:
- TurnEngine: Per-call state machine that handles setup, prompt, interrupt and
  end-of-call events, and keeps the durable session store in step with the log.
- GenerationController: Owns the single in-flight reply of each call, decides
  whether to wait for more speech, and cancels replies that have been superseded.
- ResponseGenerator: Streams (or sends whole) the model's reply to the caller and
  appends it to the log once it completes uncancelled.
- TurnCompletionClassifier: Asks a small model whether the caller has finished
  their thought; fails open to "done".
- aggregate_utterances / reconcile_interruption: Pure log transformations that
  merge consecutive user utterances and cut an interrupted reply back to what
  was actually spoken.
- ConversationSummarizer: Summarizes the finished call into the session store.

Usage examples:
```python
from relay_agent.bot import build_turn_engine
from relay_agent.config.settings import Settings

engine = build_turn_engine(Settings.from_env())

session = await engine.handle_setup("CA123", "+15555550100", websocket)
task = await engine.handle_prompt("CA123", "I finished the report", websocket)
await engine.handle_interrupt("CA123", "Nice work on", websocket)
await engine.end_call("CA123")
```
"""

from relay_agent.bot.aggregator import aggregate_utterances
from relay_agent.bot.generation_controller import GenerationController
from relay_agent.bot.reconciler import reconcile_interruption
from relay_agent.bot.response_generator import ResponseGenerator
from relay_agent.bot.summarizer import ConversationSummarizer
from relay_agent.bot.turn_classifier import TurnCompletionClassifier, TurnDecision
from relay_agent.bot.turn_engine import TurnEngine, build_turn_engine

__all__ = [
    "aggregate_utterances",
    "reconcile_interruption",
    "ConversationSummarizer",
    "GenerationController",
    "ResponseGenerator",
    "TurnCompletionClassifier",
    "TurnDecision",
    "TurnEngine",
    "build_turn_engine",
]
