"""
Core utilities and configuration for the CDC control-plane client.

This package provides foundational components used by every coordinator:

Modules:
    config: Client configuration and environment variable management
    exceptions: Exception hierarchy for validation, backend and transport errors
    logging: Logging configuration, called once by the host application at startup

Usage:
    from core.config import settings
    from core.exceptions import ValidationError, RequestError, TransportError
    from core.logging import setup_logging

Example:
    # Host application startup, before any coordinator is created
    setup_logging()
    
    try:
        await coordinator.create(mapping)
    except ValidationError as e:
        print(e.errors)
    except RequestError as e:
        print(e.message)
"""

__all__ = [
    "settings",
    "setup_logging",
    # Exceptions
    "CDCClientError",
    "ValidationError",
    "RequestError",
    "TransportError",
    "ResponseParseError",
]
