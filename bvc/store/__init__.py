"""
Local repository storage.

This module provides:
- RepositoryStore: the .bvc/ JSON documents (config, staging, commits, checkpoints)
- find_repository: repository root discovery
- IgnoreRules: .bvcignore handling and working-tree traversal
- create_working_copy: directory layout of a new repository
"""

from .repository import BVC_DIR, KINDS, RepositoryStore, find_repository
from .ignore import DEFAULT_IGNORE_TEMPLATE, IGNORE_FILE, IgnoreRules
from .layout import create_working_copy, render_readme

__all__ = [
    "BVC_DIR",
    "KINDS",
    "RepositoryStore",
    "find_repository",
    "DEFAULT_IGNORE_TEMPLATE",
    "IGNORE_FILE",
    "IgnoreRules",
    "create_working_copy",
    "render_readme",
]
