"""
Developer convenience helpers.

This package bundles small façades over well-known libraries:

- cache: In-process memory cache with sliding/absolute expiration
- config: Settings via pydantic-settings
- logging: Structured logging via structlog
- errors: Canonical error types
- http_client: httpx client with retry and circuit breaker policies
- retry / circuit_breaker: Resilience primitives used by the HTTP client
- security: Password hashing, JWT, AES and sanitizing helpers
- secrets_manager: Encrypted secrets lookup
- validation: Entity and string checks via pydantic
- formatting: Parsing, rounding and display formatting

Modules are independent of each other apart from config, logging and errors;
formatting reuses the pydantic adapters from validation.
"""

__version__ = "1.0.0"
