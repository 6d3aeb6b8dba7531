"""
Base validator interface for row validation rules.

All validators inherit from BaseValidator and implement validate(), which
returns the normalised value or raises a RowValidationError subclass.
"""

from abc import ABC, abstractmethod
from typing import Any


class BaseValidator(ABC):
    """
    Abstract base class for all validators.

    Each validator checks one field (or one derived value such as the
    coordinate pair) and raises the error type its rule owns.
    """

    def __init__(self, field_name: str, parameters: dict[str, Any] | None = None):
        """
        Initialize validator.

        Args:
            field_name: Name of the field to validate
            parameters: Rule-specific parameters (e.g., kind for numeric)
        """
        self.field_name = field_name
        self.parameters = parameters or {}

    @abstractmethod
    def validate(self, value: Any, record: dict[str, Any]) -> Any:
        """
        Validate a value against this rule.

        Args:
            value: The field value to validate
            record: The values normalised so far (for context-dependent rules)

        Returns:
            The normalised value

        Raises:
            RowValidationError: If validation fails
        """
        pass

    @property
    @abstractmethod
    def rule_type(self) -> str:
        """Return the rule type identifier."""
        pass

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(field={self.field_name}, params={self.parameters})"
