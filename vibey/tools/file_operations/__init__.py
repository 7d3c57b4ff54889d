#!/usr/bin/env python3
"""
File Operations Tools Package
"""

from .apply_patch_tool import ApplyPatchTool
from .read_file_tool import ReadFileTool
from .scan_project_tool import ScanProjectTool
from .write_file_tool import WriteFileTool

__all__ = ["ApplyPatchTool", "ReadFileTool", "ScanProjectTool", "WriteFileTool"]
