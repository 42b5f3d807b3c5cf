"""Page-to-markdown exporter plug-in loading.

Rendering a Notion block tree to markdown is delegated to an external
exporter. An exporter is any object with an ``export_markdown(page_id)``
method; it is created by a factory referenced as ``"module:attribute"``
and called with the NotionAPI instance.
"""

import importlib
import logging
from typing import Callable, Protocol, runtime_checkable

from .errors import ExporterLoadError
from .api_wrapper import NotionAPI

logger = logging.getLogger(__name__)


@runtime_checkable
class PageExporter(Protocol):
    """Anything that can render a page to markdown."""

    def export_markdown(self, page_id: str) -> str:
        ...


def load_exporter(reference: str, api: NotionAPI) -> PageExporter:
    """Load an exporter factory by import path and instantiate it.

    Args:
        reference: "package.module:factory" import reference
        api: NotionAPI passed to the factory

    Returns:
        The exporter instance

    Raises:
        ExporterLoadError: If the reference is malformed, cannot be imported,
            or does not produce a PageExporter
    """
    module_name, sep, attribute = (reference or "").partition(':')
    if not sep or not module_name or not attribute:
        raise ExporterLoadError(reference, "expected 'module:attribute'")

    try:
        module = importlib.import_module(module_name)
    except ImportError as e:
        raise ExporterLoadError(reference, str(e)) from e

    factory: Callable[[NotionAPI], object] = getattr(module, attribute, None)
    if factory is None:
        raise ExporterLoadError(reference, f"module has no attribute '{attribute}'")

    exporter = factory(api)
    if not isinstance(exporter, PageExporter):
        raise ExporterLoadError(reference, "factory did not return an object with export_markdown()")

    logger.debug(f"Loaded exporter {reference}")
    return exporter
