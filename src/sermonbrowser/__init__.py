"""
sermonbrowser - schema and configuration lifecycle for the sermon catalogue.

Bootstrap (install), cascading schema upgrade, and full teardown
(uninstall) of the nine sermon tables and their option store.

Modules
-------
core        Protocols, dialects, settings, logging, errors, option storage
migrations  Ordered schema steps and the cascade runner
install     Installer, Upgrader, Uninstaller and the host upgrade check
cli         Typer command-line interface
"""

__version__ = "0.8.0"

from sermonbrowser.install.defaults import CODE_VERSION, DATABASE_VERSION  # noqa: E402

__all__ = ["CODE_VERSION", "DATABASE_VERSION", "__version__"]
