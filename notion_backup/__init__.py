"""Selective offline backup of Notion workspaces.

This package builds the page hierarchy of a Notion workspace, converts a
selection of pages to Markdown under the API's rate limits, localizes their
images and packs the result into a single ZIP archive. A standalone HTML
export of a single Markdown document is also provided.
"""

__version__ = "0.1.0"
