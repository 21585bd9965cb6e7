from typing import Optional


class SolanaNodeError(Exception):
    """Base class for every error raised by the Solana node."""


class NodeConfigurationError(SolanaNodeError):
    """
    Raised when the run cannot start: credentials are missing or the
    configured private key cannot be decoded.
    """


class ParameterValidationError(SolanaNodeError):
    """Raised when a parameter required by the selected operation is missing."""

    def __init__(self, parameter: str, message: str = ""):
        self.parameter = parameter
        self.message = message or f"Parameter '{parameter}' is required"
        super().__init__(self.message)


class UnsupportedOperationError(SolanaNodeError):
    def __init__(self, operation: str):
        self.operation = operation
        super().__init__(f"Unsupported operation: {operation}")


class ChainClientError(SolanaNodeError):
    """
    Raised by the chain client when the RPC node rejects a request or a
    looked-up account/transaction does not exist.
    """

    def __init__(self, message: str, method: str = "", cause: Optional[Exception] = None):
        self.method = method
        self.cause = cause
        super().__init__(message)


class NodeOperationError(SolanaNodeError):
    """
    Raised to abort a run. Carries the position of the input item that failed.
    """

    def __init__(self, message: str, item_index: Optional[int] = None):
        self.message = message
        self.item_index = item_index
        if item_index is None:
            super().__init__(message)
        else:
            super().__init__(f"{message} [item {item_index}]")
