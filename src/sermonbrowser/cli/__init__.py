"""Command-line interface (``sermonbrowser``)."""
