"""Named test groups."""

from .manager import Group, GroupEntry, GroupManager

__all__ = ["Group", "GroupEntry", "GroupManager"]
