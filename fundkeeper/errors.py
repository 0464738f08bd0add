"""
fundkeeper/errors.py

Domain exceptions raised by the store, the auth gate and the services.
Each carries the HTTP status the API answers with and a human-readable
message; main.py renders them as {"error": message}.
"""


class FundKeeperError(Exception):
    status_code = 500
    message = "Server error"

    def __init__(self, message: str | None = None):
        super().__init__(message or self.message)
        if message:
            self.message = message


class ConfigError(FundKeeperError):
    """Startup configuration is missing or invalid."""
    message = "Invalid configuration"


class InvalidCredentials(FundKeeperError):
    status_code = 401
    message = "Invalid credentials"


class Unauthorized(FundKeeperError):
    status_code = 401
    message = "Not authenticated"


class UserNotFound(FundKeeperError):
    status_code = 404
    message = "User not found"


class DuplicateUser(FundKeeperError):
    status_code = 409
    message = "Username already registered"


class ConcurrentUpdate(FundKeeperError):
    """The user row changed between read and write (stale version)."""
    status_code = 409
    message = "Saved funds were modified concurrently, please retry"


class StoreUnavailable(FundKeeperError):
    status_code = 500
    message = "Server error"
