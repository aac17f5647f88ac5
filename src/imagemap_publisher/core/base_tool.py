"""BaseTool ABC — the contract shared by the resizer and the uploader."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any

from imagemap_publisher.core.events import EventBus
from imagemap_publisher.core.exceptions import ValidationError


@dataclass
class ToolParameter:
    """Declarative parameter definition.

    ``run`` fills in *default* for missing (or ``None``) values, then
    ``validate`` enforces *required* and *choices*.
    """

    name: str
    default: Any = None
    choices: list[Any] | None = None
    required: bool = False


class BaseTool(ABC):
    """Template Method base for every publishing step.

    Subclasses describe their parameters and pipeline ports and implement
    ``_do_execute``; ``run`` validates and wraps the call.
    """

    # ── metadata (override in subclass) ────────────────────────
    name: str
    display_name: str
    description: str
    version: str = "0.1.0"

    def __init__(self, event_bus: EventBus | None = None) -> None:
        """Initialise the tool with an optional event bus.

        Args:
            event_bus: Event bus for emitting progress and status events.
                       A default bus is created if none is provided.
        """
        self.event_bus = event_bus or EventBus()

    # ── parameter schema ───────────────────────────────────────
    @abstractmethod
    def define_parameters(self) -> list[ToolParameter]:
        """Return the list of parameters this tool accepts."""
        ...

    # ── I/O port declarations (for pipeline chaining) ─────────
    @abstractmethod
    def input_types(self) -> list[type]:
        """Return data types this tool can receive (empty list = entry point)."""
        ...

    @abstractmethod
    def output_types(self) -> list[type]:
        """Return data types this tool produces (empty list = terminal)."""
        ...

    # ── lifecycle (Template Method skeleton) ───────────────────
    def run(self, params: dict[str, Any], input_data: Any = None) -> Any:
        """Execute the tool — public entry point, do NOT override.

        Args:
            params: Dictionary of parameter values keyed by parameter name.
            input_data: Optional input data from a preceding pipeline stage.

        Returns:
            The result produced by the tool's core logic.
        """
        params = self.apply_defaults(params)
        self.validate(params, input_data)
        self._pre_execute(params)
        result = self._do_execute(params, input_data)
        self._post_execute(result)
        return result

    def apply_defaults(self, params: dict[str, Any]) -> dict[str, Any]:
        """Return a copy of *params* with declared defaults filled in."""
        merged = dict(params)
        for param in self.define_parameters():
            if merged.get(param.name) is None and param.default is not None:
                merged[param.name] = param.default
        return merged

    def validate(self, params: dict[str, Any], input_data: Any = None) -> None:
        """Validate params against ``define_parameters()``.

        The base implementation checks that required parameters are
        present and that values with ``choices`` are within the allowed
        set.  Override to add tool-specific rules.

        Args:
            params: Parameter dict to validate.
            input_data: Pipeline input, which may stand in for parameters.

        Raises:
            ValidationError: If any parameter is invalid.
        """
        for param in self.define_parameters():
            value = params.get(param.name)
            if value is None:
                if param.required:
                    msg = f"Parameter '{param.name}' is required"
                    raise ValidationError(msg)
                continue
            if param.choices is not None and value not in param.choices:
                msg = f"Parameter '{param.name}' must be one of {param.choices}, got '{value}'"
                raise ValidationError(msg)

    def _pre_execute(self, params: dict[str, Any]) -> None:  # noqa: B027
        """Hook called before execution (optional override).

        Args:
            params: The validated parameter dict.
        """

    @abstractmethod
    def _do_execute(self, params: dict[str, Any], input_data: Any) -> Any:
        """Core logic — MUST override.  No console output here.

        Args:
            params: Validated parameter dictionary.
            input_data: Optional input from a pipeline stage.

        Returns:
            The tool's result.
        """
        ...

    def _post_execute(self, result: Any) -> None:  # noqa: B027
        """Hook called after execution (optional override).

        Args:
            result: The value returned by ``_do_execute``.
        """
