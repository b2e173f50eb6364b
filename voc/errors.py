"""
Error taxonomy shared by the assembler and the simulator.

The scanner and sorter never raise; everything that can fail for a caller
surfaces as a VocError subclass carrying its full diagnostic payload.
"""
from typing import Any, List, Optional


class VocError(Exception):
    """Base exception for the development kit."""
    def __init__(self, message: str, code: Optional[int] = None, data: Any = None):
        super().__init__(message)
        self.code = code
        self.data = data


class ProjectNotFound(VocError):
    """A project could not be located in the workspace."""
    pass


class ComplianceViolationError(VocError):
    """One or more forbidden dialect constructs blocked a production build."""

    def __init__(self, violations: List[Any]):
        self.violations = list(violations)
        lines = [f"{len(self.violations)} compliance violations found:"]
        for v in self.violations:
            lines.append(f"  {v.fragment or '<source>'}:{v.line} [{v.rule_id}] {v.snippet}")
        super().__init__("\n".join(lines), data=self.violations)


class FragmentNotFound(VocError):
    """A required fragment (init, globals or entry) is missing."""

    def __init__(self, fragment: str, role: str):
        self.fragment = fragment
        self.role = role
        super().__init__(f"Required {role} fragment not found: {fragment}")


class EvaluationFailure(VocError):
    """A fragment threw or exceeded the execution budget."""

    def __init__(
        self,
        fragment: str,
        message: str,
        line: Optional[int] = None,
        timed_out: bool = False,
    ):
        self.fragment = fragment
        self.line = line
        self.timed_out = timed_out
        self.reason = message
        location = f"{fragment}:{line}" if line is not None else fragment
        prefix = "Timed out in" if timed_out else "Error in"
        super().__init__(f"{prefix} {location}: {message}")


class UnsupportedModeFailure(VocError):
    """A reserved HTTP or storage mode was requested."""

    def __init__(self, mode: str, feature: str, fragment: Optional[str] = None):
        self.mode = mode
        self.feature = feature
        self.fragment = fragment
        super().__init__(f"{feature} mode '{mode}' is not implemented")
