"""
Node Parameters - Declared parameter schema and value checks.

Each node declares its parameters (name, type, default, required).
Values are checked against the declared type when a node resolves
them; nothing is coerced.
"""

from __future__ import annotations

from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from .errors import ParameterTypeMismatch


NodeParameterType = Literal[
    "string", "number", "boolean", "options", "multiOptions",
    "json", "collection", "notice",
]


class NodeParameter(BaseModel):
    """
    A single parameter in the node's properties.

    Can be declared either as this model or as a plain dict in
    ``properties["parameters"]``.
    """
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    name: str = Field(..., description="Parameter key (internal name)")
    display_name: str = Field(..., alias="displayName", description="Human-readable label")
    type: NodeParameterType = Field(..., description="Parameter type")
    default: Any = Field(None, description="Default value")
    required: bool = Field(False, description="Is parameter required?")
    description: Optional[str] = Field(None, description="Help text")
    placeholder: Optional[str] = Field(None, description="Input placeholder")
    options: Optional[List[Dict[str, Any]]] = Field(
        None,
        description="Options for options/multiOptions type",
    )

    @property
    def option_values(self) -> List[Any]:
        return [option.get("value") for option in self.options or []]

    def check_value(self, value: Any, item_index: Optional[int] = None) -> Any:
        """
        Validate a resolved value against the declared type.

        Returns the value unchanged.

        Raises:
            ParameterTypeMismatch: value does not match the declared type
        """
        if value is None:
            return value

        expected = self.type
        if expected == "string":
            ok = isinstance(value, str)
        elif expected == "number":
            ok = isinstance(value, (int, float)) and not isinstance(value, bool)
        elif expected == "boolean":
            ok = isinstance(value, bool)
        elif expected == "options":
            ok = not self.options or value in self.option_values
            if not ok:
                expected = f"one of {self.option_values}"
        elif expected == "multiOptions":
            ok = isinstance(value, list) and (
                not self.options or all(v in self.option_values for v in value)
            )
        elif expected == "json":
            ok = isinstance(value, (dict, list, str))
        elif expected == "collection":
            ok = isinstance(value, (dict, list))
        else:
            ok = True

        if not ok:
            raise ParameterTypeMismatch(self.name, expected, value, item_index=item_index)
        return value


def build_parameter_schema(parameters: List[Any]) -> Dict[str, NodeParameter]:
    """Index declared parameters (models or dicts) by name."""
    schema: Dict[str, NodeParameter] = {}
    for param in parameters or []:
        if not isinstance(param, NodeParameter):
            param = NodeParameter.model_validate(param)
        schema[param.name] = param
    return schema


__all__ = [
    "NodeParameter",
    "NodeParameterType",
    "build_parameter_schema",
]
