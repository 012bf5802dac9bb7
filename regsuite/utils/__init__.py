"""Utility modules for regsuite."""
