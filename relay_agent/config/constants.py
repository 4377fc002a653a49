"""
Constants and configuration values used throughout the application.

This module defines constants that are used across different parts of the application,
providing a centralized location for configuration values and making it easier to
maintain consistent naming throughout the codebase.
"""

# Logger name used throughout the application
LOGGER_NAME = "relay_agent"

# Rotating log file; LOG_FILE overrides it
DEFAULT_LOG_FILE = "logs/relay_agent.log"

# Default OpenAI models
DEFAULT_RESPONSE_MODEL = "gpt-4o"
DEFAULT_CLASSIFIER_MODEL = "gpt-4o-mini"
DEFAULT_SUMMARY_MODEL = "gpt-4o-mini"

# Seconds to hold the reply when the user sounds unfinished
DEFAULT_NOT_DONE_WAIT_SECONDS = 10

# Prompt files, relative to the prompts directory
SYSTEM_PROMPT_FILE = "goal-tracker/system0.txt"
WELCOME_GREETING_FILE = "greeting0.txt"
DEFAULT_PROMPT_TIMEZONE = "America/Chicago"

# Inbound ConversationRelay message types
MESSAGE_TYPE_SETUP = "setup"
MESSAGE_TYPE_PROMPT = "prompt"
MESSAGE_TYPE_INTERRUPT = "interrupt"
MESSAGE_TYPE_DTMF = "dtmf"
MESSAGE_TYPE_ERROR = "error"

# Outbound message types
MESSAGE_TYPE_TEXT = "text"

# Caller identity used when the setup message carries none
DEFAULT_CALLER = "default"
