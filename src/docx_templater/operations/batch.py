"""
TemplateBatch: applying template operations described as data.

A batch is a list of dictionaries, usually loaded from a YAML or JSON file:

```yaml
- type: repair
- type: set_tag
  marker: customer
  value: ACME
- type: set_repeating_rows
  marker: first_name
  rows:
    - {first_name: First, last_name: Name}
    - {first_name: Another, last_name: Name}
- type: remove_column
  marker: discount
  strict: false
- type: clone_paragraph
  marker: note
  items: [One, Two]
```
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import TYPE_CHECKING, Any

import yaml

from ..errors import DocxTemplateError, MarkerNotFoundError, ValidationError
from ..results import OperationResult

if TYPE_CHECKING:
    from ..engine import TemplateSession

logger = logging.getLogger(__name__)


class TemplateBatch:
    """Dispatches operation dictionaries to a TemplateSession.

    Example:
        >>> batch = TemplateBatch(session)
        >>> results = batch.apply_operations([{"type": "set_tag", "marker": "a", "value": "1"}])
        >>> print(f"Applied {sum(r.success for r in results)}/{len(results)} operations")
    """

    def __init__(self, session: TemplateSession) -> None:
        self._session = session

    def apply_operations(
        self, operations: list[dict[str, Any]], stop_on_error: bool = False
    ) -> list[OperationResult]:
        """Apply operations in sequence.

        Args:
            operations: Operation dictionaries, each with a "type" key
            stop_on_error: Stop at the first failed operation

        Returns:
            One OperationResult per processed operation
        """
        results = []

        for i, operation in enumerate(operations):
            op_type = operation.get("type") if isinstance(operation, dict) else None
            if not op_type:
                result = OperationResult(
                    success=False,
                    operation="unknown",
                    message=f"Operation {i}: Missing 'type' field",
                    error=ValidationError("Missing 'type' field"),
                )
            else:
                result = self._apply_single(op_type, operation)

            results.append(result)
            if not result.success:
                logger.warning("Operation %d failed: %s", i, result.message)
                if stop_on_error:
                    break

        return results

    def apply_operation_file(
        self, path: str | Path, format: str = "yaml", stop_on_error: bool = False
    ) -> list[OperationResult]:
        """Load operations from a YAML or JSON file and apply them.

        The file holds either a list of operations or a mapping with an
        "operations" key.

        Raises:
            ValidationError: If the file cannot be read or has the wrong shape
            ValueError: If format is not "yaml" or "json"
        """
        path = Path(path)
        try:
            text = path.read_text(encoding="utf-8")
        except OSError as e:
            raise ValidationError(f"Cannot read operation file {path}: {e}") from e

        if format == "yaml":
            try:
                data = yaml.safe_load(text)
            except yaml.YAMLError as e:
                raise ValidationError(f"Invalid YAML in {path}: {e}") from e
        elif format == "json":
            try:
                data = json.loads(text)
            except json.JSONDecodeError as e:
                raise ValidationError(f"Invalid JSON in {path}: {e}") from e
        else:
            raise ValueError(f"Unsupported format: {format}")

        if isinstance(data, dict):
            data = data.get("operations")
        if not isinstance(data, list):
            raise ValidationError(f"{path} must contain a list of operations")

        return self.apply_operations(data, stop_on_error=stop_on_error)

    def _apply_single(self, op_type: str, operation: dict[str, Any]) -> OperationResult:
        handlers = {
            "set_tag": self._handle_set_tag,
            "set_repeating_rows": self._handle_set_repeating_rows,
            "remove_row": self._handle_remove_row,
            "remove_column": self._handle_remove_column,
            "clone_paragraph": self._handle_clone_paragraph,
            "repair": self._handle_repair,
        }

        handler = handlers.get(op_type)
        if handler is None:
            return OperationResult(
                success=False,
                operation=op_type,
                message=f"Unknown operation type: {op_type}",
                error=ValidationError(f"Unknown operation type: {op_type}"),
            )

        if op_type != "repair" and not operation.get("marker"):
            return OperationResult(
                success=False,
                operation=op_type,
                message="Missing required parameter: 'marker'",
                error=ValidationError("Missing required parameter"),
            )

        try:
            return handler(op_type, operation)
        except MarkerNotFoundError as e:
            return OperationResult(
                success=False,
                operation=op_type,
                message=f"Marker not found: {e.name}",
                error=e,
            )
        except (DocxTemplateError, ValueError, TypeError) as e:
            return OperationResult(success=False, operation=op_type, message=f"Error: {e}", error=e)

    def _handle_set_tag(self, op_type: str, operation: dict[str, Any]) -> OperationResult:
        marker = operation["marker"]
        count = self._session.set_tag(marker, operation.get("value", ""))
        return OperationResult(True, op_type, f"Set '{marker}' ({count} occurrence(s))")

    def _handle_set_repeating_rows(
        self, op_type: str, operation: dict[str, Any]
    ) -> OperationResult:
        marker = operation["marker"]
        rows = operation.get("rows")
        if not isinstance(rows, list) or not all(isinstance(row, dict) for row in rows):
            return OperationResult(
                success=False,
                operation=op_type,
                message="'rows' must be a list of mappings",
                error=ValidationError("'rows' must be a list of mappings"),
            )
        count = self._session.set_repeating_rows(marker, rows)
        return OperationResult(True, op_type, f"Created {count} row(s) from '{marker}'")

    def _handle_remove_row(self, op_type: str, operation: dict[str, Any]) -> OperationResult:
        marker = operation["marker"]
        self._session.remove_row(marker)
        return OperationResult(True, op_type, f"Removed row containing '{marker}'")

    def _handle_remove_column(self, op_type: str, operation: dict[str, Any]) -> OperationResult:
        marker = operation["marker"]
        column = self._session.remove_column(marker, strict=operation.get("strict", True))
        return OperationResult(True, op_type, f"Removed column {column} containing '{marker}'")

    def _handle_clone_paragraph(self, op_type: str, operation: dict[str, Any]) -> OperationResult:
        marker = operation["marker"]
        items = operation.get("items")
        if not isinstance(items, list):
            return OperationResult(
                success=False,
                operation=op_type,
                message="'items' must be a list",
                error=ValidationError("'items' must be a list"),
            )
        count = self._session.clone_paragraph(marker, items)
        return OperationResult(True, op_type, f"Produced {count} paragraph(s) from '{marker}'")

    def _handle_repair(self, op_type: str, operation: dict[str, Any]) -> OperationResult:
        count = self._session.repair()
        return OperationResult(True, op_type, f"Repaired {count} marker(s)")
