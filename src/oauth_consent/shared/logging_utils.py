"""
Colored logging utilities for the OAuth consent flow.

This module provides colored console logging with component identification,
timestamps, and message formatting so the consent flow (validation, client
lookup, approval and redirect) can be followed message by message.
"""

import logging
from datetime import datetime
from typing import Dict, Any, Optional
from enum import Enum

from colorama import Fore, Style, init

init(autoreset=True)  # Initialize colorama for Windows compatibility


class ComponentType(str, Enum):
    """Consent flow component types."""
    CONSENT_APP = "CONSENT-APP"
    AUTH_API = "AUTH-API"
    USER_BROWSER = "USER-BROWSER"
    CALLBACK_APP = "CALLBACK-APP"
    SYSTEM = "SYSTEM"


class MessageType(str, Enum):
    """Consent flow message types for logging."""
    REQUEST = "REQUEST"
    RESPONSE = "RESPONSE"
    ERROR = "ERROR"
    INFO = "INFO"
    VALIDATION = "VALIDATION"
    STATE_TRANSITION = "STATE-TRANSITION"
    NAVIGATION = "NAVIGATION"
    REDIRECT = "REDIRECT"


class OAuthLogger:
    """
    Colored logger for consent flow messages.

    Provides logging with color coding, timestamps, and structured message
    formatting to help visualize the consent flow and debug issues.
    """

    def __init__(self, component_name: str):
        """
        Initialize logger for a specific component.

        Args:
            component_name: Name of the component (CONSENT-APP, CALLBACK-APP, etc.)
        """
        self.component_name = component_name.upper()
        self.colors = self._get_component_colors()

        # Set up Python logging
        self.logger = logging.getLogger(f"oauth_consent.{component_name.lower()}")
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
            'CONSENT-APP': Fore.BLUE + Style.BRIGHT,
            'AUTH-API': Fore.GREEN + Style.BRIGHT,
            'USER-BROWSER': Fore.YELLOW + Style.BRIGHT,
            'CALLBACK-APP': Fore.CYAN + Style.BRIGHT,
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

        Redacts secrets and truncates authorization codes and PKCE values.
        """
        sanitized = {}
        for key, value in data.items():
            key_lower = key.lower()

            if any(sensitive in key_lower for sensitive in ['password', 'secret', 'key', 'cookie']):
                sanitized[key] = '[REDACTED]'
            elif any(token in key_lower for token in ['token', 'code', 'challenge', 'verifier']):
                # Show first 10 characters of codes for debugging
                if isinstance(value, str) and len(value) > 10:
                    sanitized[key] = f"{value[:10]}..."
                else:
                    sanitized[key] = value
            else:
                sanitized[key] = value

        return sanitized

    def log_oauth_message(self,
                          source: str,
                          destination: str,
                          message_type: str,
                          data: Dict[str, Any],
                          success: bool = True):
        """
        Log a consent flow message with color coding and formatting.

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

        # Choose message color based on type and success
        if not success:
            msg_color = self.colors['ERROR']
        elif message_type in ['RESPONSE', 'SUCCESS']:
            msg_color = self.colors['SUCCESS']
        else:
            msg_color = self.colors['INFO']

        header = f"{self.colors['HEADER']}[{timestamp}] {source_color}{source}{self.colors['RESET']} → {dest_color}{destination}{self.colors['RESET']}"
        print(header)

        print(f"{msg_color}{message_type}:{self.colors['RESET']}")

        sanitized_data = self._sanitize_data(data)
        for key, value in sanitized_data.items():
            print(f"  {self.colors['INFO']}{key}:{self.colors['RESET']} {value}")

        print(f"{self.colors['SEPARATOR']}{'-' * 60}{self.colors['RESET']}")
        print()

    def log_validation(self,
                       field: Optional[str],
                       details: Dict[str, Any],
                       success: bool = True):
        """
        Log the outcome of authorization request validation.

        Args:
            field: Offending parameter, or None when validation passed
            details: Validation details
            success: Whether validation passed
        """
        validation_data = {"result": "VALID" if success else "INVALID"}
        if field:
            validation_data["field"] = field
        validation_data.update(details)

        self.log_oauth_message(
            source="USER-BROWSER",
            destination=self.component_name,
            message_type=MessageType.VALIDATION.value,
            data=validation_data,
            success=success
        )

    def log_state_transition(self,
                             previous: str,
                             current: str,
                             details: Optional[Dict[str, Any]] = None):
        """
        Log a consent view state change.

        Args:
            previous: Kind of the state being left
            current: Kind of the state being entered
            details: Additional transition context
        """
        transition_data = {"from": previous, "to": current}
        if details:
            transition_data.update(details)

        self.log_oauth_message(
            source=self.component_name,
            destination=self.component_name,
            message_type=MessageType.STATE_TRANSITION.value,
            data=transition_data,
            success=current != "error"
        )

    def log_navigation(self, action: str, details: Optional[Dict[str, Any]] = None):
        """
        Log a navigation of the user agent.

        Args:
            action: Navigation performed (redirect, back, home)
            details: Navigation target and context
        """
        navigation_data = {"action": action}
        if details:
            navigation_data.update(details)

        self.log_oauth_message(
            source=self.component_name,
            destination="USER-BROWSER",
            message_type=MessageType.NAVIGATION.value,
            data=navigation_data
        )

    def log_http_request(self,
                         method: str,
                         path: str,
                         params: Optional[Dict[str, Any]] = None,
                         headers: Optional[Dict[str, str]] = None):
        """
        Log outbound HTTP request details.

        Args:
            method: HTTP method
            path: Request path
            params: Query parameters
            headers: Request headers (sensitive headers will be redacted)
        """
        request_data = {
            "method": method,
            "path": path
        }

        if params:
            request_data["parameters"] = self._sanitize_data(params)

        if headers:
            safe_headers = {}
            for key, value in headers.items():
                if key.lower() in ['authorization', 'cookie', 'x-api-key']:
                    safe_headers[key] = '[REDACTED]'
                else:
                    safe_headers[key] = value
            request_data["headers"] = safe_headers

        self.log_oauth_message(
            source=self.component_name,
            destination="AUTH-API",
            message_type="HTTP-REQUEST",
            data=request_data
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

    def log_info(self, message: str, details: Optional[Dict[str, Any]] = None):
        """
        Log informational messages.

        Args:
            message: Info message
            details: Additional context
        """
        print(f"{self.colors['INFO']}[{self._format_timestamp()}] {self.component_name}: {message}{self.colors['RESET']}")
        if details:
            for key, value in details.items():
                print(f"  {key}: {value}")
        print()

    def log_startup(self, port: int, additional_info: Optional[Dict[str, Any]] = None):
        """
        Log component startup information.

        Args:
            port: Port number the component is running on
            additional_info: Additional startup information
        """
        print(f"{self.colors['SUCCESS']}🚀 {self.component_name} started on port {port}{self.colors['RESET']}")
        if additional_info:
            for key, value in additional_info.items():
                print(f"   {key}: {value}")
        print(f"{self.colors['SEPARATOR']}{'-' * 60}{self.colors['RESET']}")
        print()


def create_logger(component_name: str) -> OAuthLogger:
    """
    Factory function to create logger instances.

    Args:
        component_name: Name of the component

    Returns:
        OAuthLogger: Configured logger instance
    """
    return OAuthLogger(component_name)
