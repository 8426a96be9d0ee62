"""
Result types for template operations applied in batches.
"""

from dataclasses import dataclass


@dataclass
class OperationResult:
    """Result of applying a single template operation.

    Attributes:
        success: Whether the operation was applied
        operation: Operation type (e.g., "set_tag", "remove_column")
        message: Human-readable message about the result
        error: Exception that stopped the operation, if any
    """

    success: bool
    operation: str
    message: str
    error: Exception | None = None

    def __str__(self) -> str:
        """Get string representation of the result."""
        status = "✓" if self.success else "✗"
        return f"{status} {self.operation}: {self.message}"
