"""Vibey Core Tools"""

from vibey.tools.base import BaseTool, ToolResult, ToolSchema
from vibey.tools.registry import ToolRegistry

__all__ = ["ToolRegistry", "BaseTool", "ToolResult", "ToolSchema"]
