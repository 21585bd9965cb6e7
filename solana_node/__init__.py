"""Solana operations node for workflow automation hosts."""
from .dispatcher import OperationDispatcher, RunContext
from .errors import (
    ChainClientError,
    NodeConfigurationError,
    NodeOperationError,
    ParameterValidationError,
    SolanaNodeError,
    UnsupportedOperationError,
)
from .node import ExecutionContext, SolanaOperationsNode, StaticExecutionContext
from .operations import Operation, build_request
from .results import OutputRecord

__all__ = [
    "ChainClientError",
    "ExecutionContext",
    "NodeConfigurationError",
    "NodeOperationError",
    "Operation",
    "OperationDispatcher",
    "OutputRecord",
    "ParameterValidationError",
    "RunContext",
    "SolanaNodeError",
    "SolanaOperationsNode",
    "StaticExecutionContext",
    "UnsupportedOperationError",
    "build_request",
]
