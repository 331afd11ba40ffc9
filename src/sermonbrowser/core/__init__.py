"""Core primitives for the sermon lifecycle engine.

Modules
-------
protocols     Connection / ConfigStore / FileSystem contracts
dialect       SQLite and MySQL SQL generation
repository    BaseRepository, SchemaRepository (catalog probes)
sqlite_conn   sqlite3 adapter for the Connection protocol
config_store  InMemoryConfigStore, SqlConfigStore
filesystem    LocalFileSystem, is_within
options       OptionsManager (aggregate + special option keys)
context       LifecycleContext
settings      LifecycleSettings (pydantic-settings)
result        OperationReport, attempt
errors        SermonBrowserError hierarchy
logging       structlog configuration
concurrency   UpgradeGuard

Tags:
    core, primitives, lifecycle
"""
