"""Suite-level settings."""

from .properties import DirectoryProperties, SuiteProperties

__all__ = ["DirectoryProperties", "SuiteProperties"]
