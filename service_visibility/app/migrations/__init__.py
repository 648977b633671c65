"""
Versioned content tree migrations.

Modules of interest:
- walker: pure recursive transform over nested content trees.
- steps: the registered schema upgrades.
- runner: applies pending upgrades once per installation.
"""

from .models import MigrationReport, MigrationStatus, MigrationStep
from .runner import MigrationRunner, decode_tree
from .steps import MIGRATIONS, upgrade_130
from .walker import walk_tree

__all__ = [
    "MIGRATIONS",
    "MigrationReport",
    "MigrationRunner",
    "MigrationStatus",
    "MigrationStep",
    "decode_tree",
    "upgrade_130",
    "walk_tree",
]
