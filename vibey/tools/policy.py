"""
Security policy for tools that touch the filesystem or the shell.
"""

import logging
import re
from pathlib import Path
from typing import List, Optional, Tuple, Union


# Directories that may be read but never written.
PROTECTED_WRITE_DIRS = (".git", "node_modules")

# Command patterns that are never executed: (regex, reason).
DANGEROUS_COMMAND_PATTERNS: List[Tuple[str, str]] = [
    (r"\brm\s+-[a-z]*r[a-z]*f[a-z]*\b|\brm\s+-[a-z]*f[a-z]*r[a-z]*\b", "Recursive forced deletion"),
    (r"\bmkfs(\.\w+)?\b", "Filesystem formatting"),
    (r"\bdd\s+", "Raw disk copy"),
    (r"\b(shutdown|reboot|halt|poweroff)\b", "System power control"),
    (r">\s*/dev/sd[a-z]", "Disk overwriting"),
    (r"\b(curl|wget)\s+[^|]*\|\s*(ba|z)?sh\b", "Remote code execution"),
    (r"\bsudo\s+", "Privilege escalation"),
    (r"\b(chmod|chown)\s+(-R\s+)?777\b", "Overly permissive permissions"),
    (r":\(\)\s*\{\s*:\|:&\s*\};:", "Fork bomb"),
]


class PolicyEngine:
    """
    Confines tools to the workspace.

    Paths must resolve inside the workspace root; writes into version
    control or dependency folders are refused; commands matching a
    destructive pattern are refused.
    """

    def __init__(self, workspace_root: Union[str, Path]):
        self.workspace_root = Path(workspace_root).resolve()
        self.logger = logging.getLogger("PolicyEngine")
        self._command_patterns = [
            (re.compile(p, re.IGNORECASE), reason) for p, reason in DANGEROUS_COMMAND_PATTERNS
        ]

    def resolve(self, target: str) -> Path:
        candidate = Path(str(target).strip().strip("\"'")).expanduser()
        if not candidate.is_absolute():
            candidate = self.workspace_root / candidate
        return candidate.resolve()

    def check_path_access(self, target: str, mode: str = "read") -> Optional[str]:
        """Return a refusal reason, or None when access is allowed."""
        if not target or not str(target).strip():
            return "Empty path"

        resolved = self.resolve(target)
        if resolved != self.workspace_root and self.workspace_root not in resolved.parents:
            self.logger.warning("Blocked access to %s (outside workspace)", resolved)
            return f"Path is outside the workspace: {target}"

        if mode == "write":
            relative_parts = resolved.relative_to(self.workspace_root).parts
            for protected in PROTECTED_WRITE_DIRS:
                if protected in relative_parts:
                    self.logger.warning("Blocked write into %s: %s", protected, resolved)
                    return f"Writes into '{protected}' are not allowed: {target}"

        return None

    def check_command(self, command: str) -> Optional[str]:
        """Return a refusal reason, or None when the command may run."""
        for pattern, reason in self._command_patterns:
            if pattern.search(command):
                self.logger.warning("Blocked command (%s): %s", reason, command)
                return reason
        return None
