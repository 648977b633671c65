"""
Migration data models for the Visibility service.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from packaging.version import Version
from pydantic import BaseModel, Field


ContentNode = Dict[str, Any]
NodeTransform = Callable[[ContentNode], ContentNode]


class MigrationStatus(str, Enum):
    """Outcome of a migration run."""
    NOOP = "noop"
    SUCCESS = "success"
    PARTIAL_FAILURE = "partial_failure"


STATUS_MESSAGES = {
    MigrationStatus.NOOP: "Visibility Logic database is already up to date.",
    MigrationStatus.SUCCESS: "Awesome, Visibility Logic database is now at the latest version!",
    MigrationStatus.PARTIAL_FAILURE: "Something went wrong, please check logs.",
}


@dataclass(frozen=True)
class MigrationStep:
    """One schema upgrade applied to every root node of every stored tree."""
    version: str
    transform: NodeTransform
    # Manual steps run only when the caller confirms the run
    confirm: bool = False
    description: str = ""

    @property
    def parsed_version(self) -> Version:
        return Version(self.version)


class MigrationReport(BaseModel):
    """Structured outcome returned to the host after a run."""
    status: MigrationStatus = Field(..., description="noop, success or partial_failure")
    applied_versions: List[str] = Field(default_factory=list, description="Versions applied by this run")
    skipped_versions: List[str] = Field(default_factory=list, description="Manual versions awaiting confirmation")
    failed_version: Optional[str] = Field(None, description="Version whose step failed")
    error: Optional[str] = Field(None, description="Failure detail")
    items_rewritten: int = Field(0, description="Content items written back")

    @property
    def message(self) -> str:
        return STATUS_MESSAGES[self.status]

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(mode="json")
