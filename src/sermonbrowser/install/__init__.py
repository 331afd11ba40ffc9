"""Install, upgrade and uninstall entry points.

Modules
-------
installer       Installer.run()
upgrader        Upgrader.upgrade_options / version_upgrade / database_upgrade
uninstaller     Uninstaller.run / drop_tables / delete_options / get_table_names
lifecycle       check_upgrades (host-side version check)
schema          latest-shape table definitions, Bible book list
defaults        version constants, default options and templates
legacy_options  legacy option key mappings
tags            tag dedupe and unused-tag cleanup
"""
