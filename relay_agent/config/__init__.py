"""
Configuration module for the relay agent application.

This module provides centralized configuration management for the entire application,
including constants, logging setup, and environment-based configuration.

Key components:
- constants: Defines application-wide constants used across modules, including
  message types, default model names and prompt file locations.
- logging_config: Provides a consistent logging infrastructure with support for
  console and file-based logging with rotation capabilities.
- settings: Collects environment variables into an immutable Settings object
  that the server and the turn engine are built from.

Usage examples:
```python
# Import and use constants
from relay_agent.config.constants import LOGGER_NAME, DEFAULT_RESPONSE_MODEL

# Set up logging for your module
from relay_agent.config.logging_config import configure_logging
logger = configure_logging()
logger.info("Application started")

# Read settings from the environment
from relay_agent.config.settings import Settings
settings = Settings.from_env()
print(settings.websocket_url)
```
"""

# Config module initialization
