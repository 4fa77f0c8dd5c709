"""Per-file analysis results."""

from typing import List

from pydantic import BaseModel, Field

from treecheck.models.diagnostic import Diagnostic
from treecheck.models.error import ErrorRecord


class FileReport(BaseModel):
    """Diagnostics and failures produced for one syntax tree."""

    file_path: str
    diagnostics: List[Diagnostic] = Field(default_factory=list)
    failures: List[ErrorRecord] = Field(default_factory=list)
    nodes_visited: int = 0

    @property
    def ok(self) -> bool:
        return not self.failures

    def diagnostics_for(self, rule: str) -> List[Diagnostic]:
        return [d for d in self.diagnostics if d.rule == rule]
