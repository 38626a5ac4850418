"""
Configuration module for slackecho
Handles all environment variables and default settings
"""
import os
from dotenv import load_dotenv
from typing import Optional, Dict, Any
from dataclasses import dataclass, field

load_dotenv()

# Slack renders at most this many characters of a message body
SLACK_MESSAGE_LENGTH_LIMIT = 4096


@dataclass
class RelayConfig:
    """Central configuration for the relay and its command line"""

    # Connection store
    connections_file: str = field(default_factory=lambda: os.path.expanduser(
        os.getenv("SLACKECHO_CONFIG", "~/.slackecho.conf")
    ))

    # Relay pipeline
    message_length_limit: int = field(default_factory=lambda: int(os.getenv("RELAY_MESSAGE_LENGTH_LIMIT", str(SLACK_MESSAGE_LENGTH_LIMIT))))
    min_send_interval: float = field(default_factory=lambda: float(os.getenv("RELAY_MIN_SEND_INTERVAL", "1.0")))
    collapse_overwrites: bool = field(default_factory=lambda: os.getenv("RELAY_COLLAPSE_OVERWRITES", "false").lower() == "true")
    input_chunk_size: int = field(default_factory=lambda: int(os.getenv("RELAY_INPUT_CHUNK_SIZE", "4096")))

    # Slack API
    slack_poll_interval: float = field(default_factory=lambda: float(os.getenv("SLACK_POLL_INTERVAL", "2.0")))
    slack_api_timeout: int = field(default_factory=lambda: int(os.getenv("SLACK_API_TIMEOUT", "30")))

    # Logging configuration
    log_level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO"))
    slack_log_level: str = field(default_factory=lambda: os.getenv("SLACK_LOG_LEVEL", "INFO"))
    console_logging_enabled: bool = field(default_factory=lambda: os.getenv("CONSOLE_LOGGING_ENABLED", "TRUE").upper() == "TRUE")
    log_directory: str = field(default_factory=lambda: os.path.expanduser(
        os.getenv("LOG_DIRECTORY", "~/.slackecho/logs")
    ))
    debug_mode: bool = field(default_factory=lambda: os.getenv("DEBUG_MODE", "false").lower() == "true")

    def validate(self) -> bool:
        """Validate relay configuration"""
        if self.message_length_limit <= 0:
            raise ValueError("RELAY_MESSAGE_LENGTH_LIMIT must be positive")
        if self.min_send_interval < 0:
            raise ValueError("RELAY_MIN_SEND_INTERVAL must not be negative")
        if self.input_chunk_size <= 0:
            raise ValueError("RELAY_INPUT_CHUNK_SIZE must be positive")
        if self.slack_poll_interval <= 0:
            raise ValueError("SLACK_POLL_INTERVAL must be positive")
        return True

    def get_relay_settings(self, overrides: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """Get the relay pipeline settings

        Args:
            overrides: Per-processor overrides, applied last

        Returns:
            Dictionary of settings understood by relay.processor.start()
        """
        settings = {
            "message_length_limit": self.message_length_limit,
            "min_send_interval": self.min_send_interval,
            "collapse_overwrites": self.collapse_overwrites,
        }

        if overrides:
            settings.update(overrides)

        return settings


# Global config instance
config = RelayConfig()
