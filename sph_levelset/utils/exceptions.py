"""
Exception classes for sph_levelset with actionable error messages.

Only configuration errors are fatal. Queries outside the mesh, degenerate
gradients and inconsistent geometry input are expected conditions: the first
two are handled numerically, the last is reported as a GeometryQualityWarning.
"""

from __future__ import annotations

from typing import Any

import numpy as np


class LevelSetError(Exception):
    """
    Base exception for level-set engine errors with context and suggestions.

    Provides structured error information including:
    - Clear error description
    - Component context
    - Suggested action for resolution
    - Optional diagnostic data
    """

    def __init__(
        self,
        message: str,
        component: str | None = None,
        suggested_action: str | None = None,
        error_code: str | None = None,
        diagnostic_data: dict[str, Any] | None = None,
    ):
        self.component = component or "LevelSet"
        self.suggested_action = suggested_action
        self.error_code = error_code
        self.diagnostic_data = diagnostic_data or {}

        full_message = f"[{self.component}] {message}"

        if self.suggested_action:
            full_message += f"\nSuggestion: {self.suggested_action}"

        if self.error_code:
            full_message += f"\nError Code: {self.error_code}"

        if self.diagnostic_data:
            full_message += "\nDiagnostic Information:"
            for key, value in self.diagnostic_data.items():
                full_message += f"\n   - {key}: {value}"

        super().__init__(full_message)


class ConfigurationError(LevelSetError):
    """Raised at construction when a mesh or level-set parameter is invalid."""

    def __init__(
        self,
        parameter_name: str,
        provided_value: Any,
        expected_type: type | None = None,
        valid_range: tuple | None = None,
        component: str | None = None,
        reason: str | None = None,
    ):
        diagnostic_data = {
            "parameter": parameter_name,
            "provided_value": str(provided_value),
            "provided_type": type(provided_value).__name__,
        }

        if expected_type:
            diagnostic_data["expected_type"] = expected_type.__name__

        if valid_range:
            diagnostic_data["valid_range"] = f"[{valid_range[0]}, {valid_range[1]}]"

        if reason:
            diagnostic_data["reason"] = reason

        suggested_action = _generate_configuration_suggestions(
            parameter_name, provided_value, expected_type, valid_range
        )

        super().__init__(
            message=f"Invalid configuration for parameter '{parameter_name}'",
            component=component,
            suggested_action=suggested_action,
            error_code="INVALID_CONFIGURATION",
            diagnostic_data=diagnostic_data,
        )


class DimensionMismatchError(LevelSetError):
    """Raised when query positions do not match the mesh dimension."""

    def __init__(
        self,
        array_name: str,
        provided_shape: tuple,
        expected_dimension: int,
        component: str | None = None,
    ):
        diagnostic_data = {
            "array_name": array_name,
            "provided_shape": str(provided_shape),
            "expected_shape": f"({expected_dimension},) or (N, {expected_dimension})",
        }

        super().__init__(
            message=f"Dimension mismatch for {array_name}",
            component=component,
            suggested_action=(
                f"Pass a single point of length {expected_dimension} or an (N, {expected_dimension}) array"
            ),
            error_code="DIMENSION_MISMATCH",
            diagnostic_data=diagnostic_data,
        )


class GeometryQualityWarning(UserWarning):
    """
    Emitted when the geometry oracle gives inconsistent answers during classification.

    The engine proceeds with the resulting classification; the warning lets the
    owning caller decide whether the geometry input needs repair.
    """


def _generate_configuration_suggestions(
    parameter_name: str,
    provided_value: Any,
    expected_type: type | None,
    valid_range: tuple | None,
) -> str:
    """Generate specific suggestions for configuration errors."""
    suggestions = []

    if expected_type and not isinstance(provided_value, expected_type):
        suggestions.append(f"Convert {parameter_name} to {expected_type.__name__}")

    if valid_range and isinstance(provided_value, (int, float)):
        if provided_value < valid_range[0]:
            suggestions.append(f"Increase {parameter_name} to at least {valid_range[0]}")
        elif provided_value > valid_range[1]:
            suggestions.append(f"Decrease {parameter_name} to at most {valid_range[1]}")

    if "spacing" in parameter_name.lower() and isinstance(provided_value, (int, float)) and provided_value <= 0:
        suggestions.append("Grid spacing must be positive")

    if "bounds" in parameter_name.lower():
        suggestions.append("Bounding box needs lower < upper on every axis")

    return " | ".join(suggestions) if suggestions else f"Check {parameter_name} value and try again"


def validate_bounds(bounds: Any, component: str | None = None) -> np.ndarray:
    """Validate a (d, 2) bounding box with d in {2, 3} and return it as a float array."""
    array = np.asarray(bounds, dtype=float)

    if array.ndim != 2 or array.shape[1] != 2 or array.shape[0] not in (2, 3):
        raise ConfigurationError(
            parameter_name="bounds",
            provided_value=bounds,
            component=component,
            reason=f"expected shape (2, 2) or (3, 2), got {array.shape}",
        )

    if not np.all(np.isfinite(array)) or np.any(array[:, 1] <= array[:, 0]):
        raise ConfigurationError(
            parameter_name="bounds",
            provided_value=bounds,
            component=component,
            reason="degenerate bounding box",
        )

    return array


def validate_positive(value: float, parameter_name: str, component: str | None = None) -> float:
    """Validate that a spacing-like parameter is finite and strictly positive."""
    if not isinstance(value, (int, float)) or not np.isfinite(value) or value <= 0:
        raise ConfigurationError(
            parameter_name=parameter_name,
            provided_value=value,
            expected_type=float,
            valid_range=(0, float("inf")),
            component=component,
        )
    return float(value)


def validate_positions(
    positions: Any, dimension: int, component: str | None = None
) -> tuple[np.ndarray, bool]:
    """
    Normalize query positions to an (N, d) array.

    Returns:
        (positions, is_single): the (N, d) array and whether a single point was passed
    """
    array = np.asarray(positions, dtype=float)
    is_single = array.ndim == 1

    if is_single:
        array = array.reshape(1, -1)

    if array.ndim != 2 or array.shape[1] != dimension:
        raise DimensionMismatchError(
            array_name="positions",
            provided_shape=np.shape(positions),
            expected_dimension=dimension,
            component=component,
        )

    return array, is_single
