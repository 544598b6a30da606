"""
Client Errors

Exception hierarchy raised by the core and mapped to HTTP status codes by the API.
"""

from typing import Optional


class ClientError(Exception):
    """Base class for all client node errors"""
    status_code = 400


class AddressParseError(ClientError):
    """Raised when a process id or address string is malformed"""
    status_code = 400


class MessageDecodeError(ClientError):
    """Raised when a message body or blob does not match any known variant"""
    status_code = 400


class PermissionDeniedError(ClientError):
    """Raised when an admin request comes from a foreign node"""
    status_code = 403


class NotConfiguredError(ClientError):
    """Raised when an operation needs router or sequencer configuration first"""
    status_code = 409


class TransportError(ClientError):
    """Raised when a message cannot be delivered to another node"""
    status_code = 502

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.remote_status_code = status_code


class ChainStateError(ClientError):
    """Raised when the rollup sequencer returns an unusable reply"""
    status_code = 502


class ConfigError(ClientError):
    """Raised when configuration files or environment values are invalid"""
    status_code = 500
