"""
Colored logging utilities for the token harness.

This module provides colored console logging with component identification,
timestamps, and message formatting so each step of the authorization code flow
(login redirect, code exchange, refresh, introspection) is easy to follow in
the terminal running the harness.
"""

import logging
from datetime import datetime
from typing import Dict, Any, Optional
from enum import Enum

from colorama import Fore, Style, init

init(autoreset=True)  # Initialize colorama for Windows compatibility


class ComponentType(str, Enum):
    """Parties taking part in a harness flow."""
    HARNESS = "HARNESS"
    IDENTITY_PROVIDER = "IDENTITY-PROVIDER"
    BROWSER = "BROWSER"
    SYSTEM = "SYSTEM"


class MessageType(str, Enum):
    """Message types for logging."""
    REQUEST = "REQUEST"
    RESPONSE = "RESPONSE"
    ERROR = "ERROR"
    INFO = "INFO"
    DEBUG = "DEBUG"
    STATE_GENERATION = "STATE-GENERATION"
    STATE_VERIFICATION = "STATE-VERIFICATION"
    TOKEN_EXCHANGE = "TOKEN-EXCHANGE"
    TOKEN_REFRESH = "TOKEN-REFRESH"
    TOKEN_INTROSPECTION = "TOKEN-INTROSPECTION"
    REDIRECT = "REDIRECT"


class OAuthLogger:
    """
    Colored logger for OAuth message flows.

    Provides logging with color coding, timestamps, and structured message
    formatting to help visualize the flow between the browser, the harness and
    the identity provider.
    """

    SENSITIVE_KEYS = ['password', 'secret']
    TRUNCATED_KEYS = ['token', 'code', 'state']
    PLAIN_SUFFIXES = ['_type', '_hint', '_url', '_uri']

    def __init__(self, component_name: str):
        """
        Initialize logger for a specific component.

        Args:
            component_name: Name of the component (HARNESS, IDENTITY-PROVIDER, etc.)
        """
        self.component_name = component_name.upper()
        self.colors = self._get_component_colors()

        self.logger = logging.getLogger(f"token_harness.{component_name.lower()}")
        self.logger.setLevel(logging.INFO)

        # Remove existing handlers to avoid duplicates
        self.logger.handlers.clear()

        handler = logging.StreamHandler()
        handler.setLevel(logging.INFO)
        self.logger.addHandler(handler)
        self.logger.propagate = False

    def _get_component_colors(self) -> Dict[str, str]:
        """Get color scheme for different components and message types."""
        return {
            'HARNESS': Fore.BLUE + Style.BRIGHT,
            'IDENTITY-PROVIDER': Fore.GREEN + Style.BRIGHT,
            'BROWSER': Fore.YELLOW + Style.BRIGHT,
            'SYSTEM': Fore.MAGENTA + Style.BRIGHT,
            'ERROR': Fore.RED + Style.BRIGHT,
            'SUCCESS': Fore.GREEN + Style.BRIGHT,
            'INFO': Fore.CYAN,
            'DEBUG': Fore.WHITE + Style.DIM,
            'HEADER': Fore.WHITE + Style.BRIGHT,
            'SEPARATOR': Fore.WHITE + Style.DIM,
            'RESET': Style.RESET_ALL
        }

    def _format_timestamp(self) -> str:
        """Format current timestamp for log messages."""
        return datetime.now().strftime("%Y-%m-%d %H:%M:%S.%f")[:-3]

    def _sanitize_data(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Sanitize sensitive data for logging.

        Redacts secrets and truncates tokens, codes and state values. Keys such
        as `token_type` or `redirect_uri` are descriptive and left intact.
        """
        sanitized = {}
        for key, value in data.items():
            key_lower = key.lower()

            if any(sensitive in key_lower for sensitive in self.SENSITIVE_KEYS):
                sanitized[key] = '[REDACTED]' if value else value
            elif any(key_lower.endswith(suffix) for suffix in self.PLAIN_SUFFIXES):
                sanitized[key] = value
            elif any(token in key_lower for token in self.TRUNCATED_KEYS):
                if isinstance(value, str) and len(value) > 10:
                    sanitized[key] = f"{value[:10]}..."
                else:
                    sanitized[key] = value
            else:
                sanitized[key] = value

        return sanitized

    def _emit(self, line: str):
        self.logger.info(line)

    def log_oauth_message(self,
                         source: str,
                         destination: str,
                         message_type: str,
                         data: Dict[str, Any],
                         success: bool = True):
        """
        Log a flow message with color coding and formatting.

        Args:
            source: Source component name
            destination: Destination component name
            message_type: Type of message (REQUEST, RESPONSE, etc.)
            data: Message data dictionary
            success: Whether the operation was successful
        """
        timestamp = self._format_timestamp()
        source_color = self.colors.get(source.upper(), self.colors['INFO'])
        dest_color = self.colors.get(destination.upper(), self.colors['INFO'])

        if not success:
            msg_color = self.colors['ERROR']
        elif message_type in ['RESPONSE', 'SUCCESS']:
            msg_color = self.colors['SUCCESS']
        else:
            msg_color = self.colors['INFO']

        self._emit(f"{self.colors['HEADER']}[{timestamp}] {source_color}{source}{self.colors['RESET']} → {dest_color}{destination}{self.colors['RESET']}")
        self._emit(f"{msg_color}{message_type}:{self.colors['RESET']}")

        for key, value in self._sanitize_data(data).items():
            self._emit(f"  {self.colors['INFO']}{key}:{self.colors['RESET']} {value}")

        self._emit(f"{self.colors['SEPARATOR']}{'-' * 60}{self.colors['RESET']}")

    def log_token_operation(self,
                           operation: str,
                           details: Dict[str, Any],
                           success: bool = True):
        """
        Log token-related operations (exchange, refresh, introspection).

        Args:
            operation: Token operation name
            details: Operation details
            success: Whether operation was successful
        """
        self.log_oauth_message(
            source=self.component_name,
            destination="IDENTITY-PROVIDER",
            message_type=f"TOKEN-{operation.upper()}",
            data=details,
            success=success
        )

    def log_error(self,
                 error_type: str,
                 message: str,
                 details: Optional[Dict[str, Any]] = None):
        """
        Log error messages with context.

        Args:
            error_type: Type of error
            message: Error message
            details: Additional error context
        """
        error_data = {
            "error_type": error_type,
            "message": message
        }

        if details:
            error_data.update(details)

        self.log_oauth_message(
            source=self.component_name,
            destination="ERROR-HANDLER",
            message_type="ERROR",
            data=error_data,
            success=False
        )

    def log_startup(self, port: int, additional_info: Optional[Dict[str, Any]] = None):
        """
        Log component startup information.

        Args:
            port: Port number the component is running on
            additional_info: Additional startup information
        """
        self._emit(f"{self.colors['SUCCESS']}{self.component_name} started on port {port}{self.colors['RESET']}")
        if additional_info:
            for key, value in additional_info.items():
                self._emit(f"   {key}: {value}")
        self._emit(f"{self.colors['SEPARATOR']}{'-' * 60}{self.colors['RESET']}")


def create_logger(component_name: str) -> OAuthLogger:
    """
    Factory function to create logger instances.

    Args:
        component_name: Name of the component

    Returns:
        OAuthLogger: Configured logger instance
    """
    return OAuthLogger(component_name)
