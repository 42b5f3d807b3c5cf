"""Markdown to standalone HTML conversion.

This module renders exported page markdown as themed, printable HTML
documents.
"""

from .markdown_to_html import DEFAULT_TITLE, markdown_to_html_fragment, to_standalone_html

__all__ = ['DEFAULT_TITLE', 'markdown_to_html_fragment', 'to_standalone_html']
