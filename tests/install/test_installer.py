"""Tests for the first-run Installer."""

from __future__ import annotations

import os

from sermonbrowser.core.options import AGGREGATE_KEY
from sermonbrowser.install.defaults import (
    DATABASE_VERSION,
    MP3_SHORTCODE,
    default_css,
    excerpt_template,
)
from sermonbrowser.install.installer import Installer
from sermonbrowser.install.schema import ENGLISH_BIBLE_BOOKS, TABLES
from sermonbrowser.install.uninstaller import Uninstaller


class TestFreshInstall:
    def test_creates_everything(self, ctx) -> None:
        report = Installer(ctx).run()

        assert report.success, report.errors
        for name in Uninstaller.get_table_names():
            assert ctx.schema.table_exists("wp_" + name), name
        assert os.path.isdir(ctx.upload_path())
        assert os.path.isdir(ctx.upload_path("images"))
        assert ctx.options.get("db_version") == DATABASE_VERSION
        assert len(ctx.options.all()) >= 20

    def test_default_option_values(self, ctx) -> None:
        Installer(ctx).run()
        options = ctx.options
        assert options.get("upload_dir") == "wp-content/uploads/sermons/"
        assert options.get("podcast_url") == "http://example.test/?podcast"
        assert options.get("display_method") == "dynamic"
        assert options.get("sermons_per_page") == "10"
        assert options.get("filter_type") == "oneclick"
        assert options.get("filter_hide") == "hide"
        assert options.get("import_prompt") is True
        assert options.get("import_title") is False
        assert options.get("import_filename") == "none"
        assert options.get("mp3_shortcode") == MP3_SHORTCODE
        assert "[sermons_loop]" in options.get("search_template")
        assert "[sermon_title]" in options.get("single_template")
        assert "**SB_PATH**" not in options.get("css_style")
        assert isinstance(options.get("style_date_modified"), int)
        assert ctx.config.get(AGGREGATE_KEY) is not None

    def test_seeds_and_books(self, ctx) -> None:
        Installer(ctx).run()
        preachers = ctx.schema.query("SELECT name FROM wp_sb_preachers ORDER BY id")
        assert [r["name"] for r in preachers] == ["C H Spurgeon", "Martyn Lloyd-Jones"]
        series = ctx.schema.query("SELECT name FROM wp_sb_series ORDER BY id")
        assert [r["name"] for r in series] == ["Exposition of the Psalms", "Exposition of Romans"]
        books = ctx.schema.query("SELECT name FROM wp_sb_books ORDER BY id")
        assert [r["name"] for r in books] == list(ENGLISH_BIBLE_BOOKS)
        assert len(books) == 66

    def test_latest_shape_indexes(self, ctx) -> None:
        Installer(ctx).run()
        assert ctx.schema.index_exists("wp_sb_books_sermons_sermon_id")
        assert ctx.schema.index_exists("wp_sb_sermons_tags_sermon_id")
        assert ctx.schema.index_exists("wp_sb_tags_name")
        assert ctx.schema.column_exists("wp_sb_sermons", "datetime")
        assert not ctx.schema.column_exists("wp_sb_sermons", "date")


class TestTemplates:
    def test_excerpt_template_available(self) -> None:
        text = excerpt_template()
        assert "[sermons_loop]" in text
        assert "[sermon_title]" in text

    def test_css_plugin_path(self) -> None:
        css = default_css("http://example.test/plugins/sb/")
        assert "http://example.test/plugins/sb" in css
        assert "**SB_PATH**" not in css


class TestIdempotentInstall:
    def test_second_run_skips_and_does_not_reseed(self, ctx) -> None:
        Installer(ctx).run()
        ctx.db.execute("DELETE FROM wp_sb_preachers")
        ctx.db.commit()

        report = Installer(ctx).run()

        assert report.success
        assert ctx.schema.count("wp_sb_preachers") == 0
        assert ctx.schema.count("wp_sb_books") == 66
        assert "create_table:wp_sb_tags" in report.skipped

    def test_existing_table_not_recreated(self, ctx) -> None:
        ctx.db.execute("CREATE TABLE wp_sb_series (id INTEGER PRIMARY KEY, name TEXT)")
        Installer(ctx).run()
        assert ctx.schema.count("wp_sb_series") == 0
        assert len(TABLES) == 9
