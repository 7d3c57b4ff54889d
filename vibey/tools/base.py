"""
Base classes and interfaces for the tool system.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Any, ClassVar, Dict, List, Optional, Type

from pydantic import BaseModel, ConfigDict, ValidationError

from vibey.agent.structs import ToolResult
from vibey.exceptions.tools import ToolInputValidationError
from vibey.tools.policy import PolicyEngine

__all__ = ["BaseTool", "NoParams", "ToolParams", "ToolResult", "ToolSchema"]


@dataclass
class ToolSchema:
    """Describes a tool's interface."""

    name: str
    description: str
    parameters: Dict[str, Any]
    required_params: List[str]


class ToolParams(BaseModel):
    """Base for per-tool parameter models. Unknown keys are rejected."""

    model_config = ConfigDict(extra="forbid")


class NoParams(ToolParams):
    pass


class BaseTool(ABC):
    """
    Abstract base class for all tools.

    Subclasses declare ``name``, ``description`` and a pydantic ``Params``
    model. ``execute`` receives a validated ``Params`` instance and may be
    sync (run in a worker thread) or async.
    """

    name: ClassVar[str]
    description: ClassVar[str]
    Params: ClassVar[Type[ToolParams]] = NoParams

    def __init__(self, working_dir: Path, policy: Optional[PolicyEngine] = None):
        self.logger = logging.getLogger(f"tools.{self.__class__.__name__}")
        self.working_dir = Path(working_dir).resolve()
        self.policy = policy or PolicyEngine(self.working_dir)

    @property
    def schema(self) -> ToolSchema:
        """Return the tool's schema definition."""
        json_schema = self.Params.model_json_schema()
        return ToolSchema(
            name=self.name,
            description=self.description,
            parameters=json_schema.get("properties", {}),
            required_params=list(json_schema.get("required", [])),
        )

    def definition(self) -> Dict[str, Any]:
        """Catalog entry: name, description and a JSON schema of the parameters."""
        schema = self.schema
        return {
            "name": schema.name,
            "description": schema.description,
            "parameters": {
                "type": "object",
                "properties": schema.parameters,
                "required": schema.required_params,
            },
        }

    def validate_params(self, raw: Dict[str, Any]) -> ToolParams:
        """
        Validate raw model-supplied parameters.

        Raises:
            ToolInputValidationError: Naming every offending field.
        """
        try:
            return self.Params.model_validate(raw or {})
        except ValidationError as e:
            problems = "; ".join(
                f"{'.'.join(str(p) for p in err['loc']) or 'parameters'}: {err['msg']}"
                for err in e.errors()
            )
            raise ToolInputValidationError(
                f"Invalid parameters for {self.name}: {problems}",
                tool_name=self.name,
                invalid_input=raw,
            ) from e

    @abstractmethod
    def execute(self, params: ToolParams) -> ToolResult:
        """Execute the tool's main logic."""
