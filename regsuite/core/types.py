"""Core type definitions for regsuite."""

from typing import Dict, List, Optional
from pathlib import Path

from pydantic import BaseModel, Field, field_validator, model_validator

from .enums import TestStatus

DEFAULT_IGNORED_DIRS = [
    "SCCS",
    "Codemgr_wsdata",
    ".hg",
    "RCS",
    ".svn",
    "DeletedFiles",
    "DELETED-FILES",
    "deleted_files",
    "TemporarilyRemoved",
]

DEFAULT_EXTENSIONS = [".java", ".jasm", ".jcod", ".sh", ".html"]


class JdkInfo(BaseModel):
    """Facts about the target JDK supplied by the caller."""

    properties: Dict[str, str] = Field(default_factory=dict)
    installed_modules: Optional[List[str]] = None
    vm_options: List[str] = Field(default_factory=list)

    @property
    def major_version(self) -> int:
        spec = self.properties.get("java.specification.version")
        if not spec:
            return 0
        head = spec[2:] if spec.startswith("1.") else spec
        try:
            return int(head.split(".")[0])
        except ValueError:
            return 0

    @property
    def has_modules(self) -> bool:
        return self.major_version >= 9 and bool(self.installed_modules)


class RegsuiteConfig(BaseModel):
    """Main harness configuration for one run."""

    suite_root: Optional[Path] = None
    jdk: JdkInfo = Field(default_factory=JdkInfo)

    # Finder
    check_bug_ids: bool = True
    allowed_extensions: List[str] = Field(default_factory=lambda: list(DEFAULT_EXTENSIONS))
    ignored_dirs: List[str] = Field(default_factory=lambda: list(DEFAULT_IGNORED_DIRS))
    reject_trailing_build: bool = True

    # Selection
    time_limit: int = 0
    keywords: Optional[str] = None
    exclude_lists: List[Path] = Field(default_factory=list)
    match_lists: List[Path] = Field(default_factory=list)
    prior_status: List[TestStatus] = Field(default_factory=list)
    prior_status_file: Optional[Path] = None
    test_thread_factory: Optional[str] = None

    # Runtime
    verbose: int = 0
    log_level: str = "INFO"
    log_file: Optional[Path] = None

    @field_validator("allowed_extensions")
    @classmethod
    def _normalize_extensions(cls, value: List[str]) -> List[str]:
        return [ext if ext.startswith(".") else f".{ext}" for ext in value]

    @model_validator(mode="after")
    def validate_config(self) -> "RegsuiteConfig":
        """Validate configuration. Performs no filesystem access."""
        from .errors import ConfigurationError

        if self.time_limit < 0:
            raise ConfigurationError("Time limit must not be negative")
        if not self.allowed_extensions:
            raise ConfigurationError("At least one test file extension is required")
        if self.prior_status and self.prior_status_file is None:
            raise ConfigurationError("prior_status requires prior_status_file")
        if self.log_level.upper() not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ConfigurationError(f"Unknown log level: {self.log_level}")

        return self
