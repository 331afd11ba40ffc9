"""Schema cascade for the sermon tables.

Modules
-------
runner    MigrationStep, CascadeRunner
steps     SCHEMA_STEPS (1.0 → 1.7)

Tags:
    migrations, schema, cascade
"""

from sermonbrowser.migrations.runner import CascadeRunner, MigrationStep

__all__ = ["CascadeRunner", "MigrationStep"]
