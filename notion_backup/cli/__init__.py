"""Command-line interface for Notion workspace backups.

This package provides the `notion-backup` CLI tool: listing the workspace,
backing up pages into a ZIP archive and rendering markdown as standalone
HTML.
"""
