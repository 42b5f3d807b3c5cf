"""Conversion result data model."""

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class ConversionItem:
    """One page queued for markdown conversion.

    Attributes:
        page_id: Id of the page to export
        title: Page title (used as folder fallback and progress label)
        path: Sanitized folder path joined with '/' ('' if unknown)
    """
    page_id: str
    title: str
    path: str = ""


@dataclass(frozen=True)
class ConversionResult:
    """Terminal outcome of converting one page to markdown.

    Exactly one result exists per requested page. A failed conversion keeps
    an empty body and carries the error message instead of raising.

    Attributes:
        page_id: Id of the converted page
        title: Page title
        path: Sanitized folder path joined with '/'
        markdown: Converted markdown body ('' on failure)
        error: Error message if the conversion failed
    """
    page_id: str
    title: str
    path: str
    markdown: str = ""
    error: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.error is None
