"""chainflow - DAG workflow execution engine for blockchain operations."""

__version__ = "0.1.0"
