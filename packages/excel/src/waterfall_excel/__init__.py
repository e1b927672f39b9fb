"""Excel export for waterfall scenarios."""

from .workbook_renderer import WaterfallWorkbookRenderer

__all__ = ["WaterfallWorkbookRenderer"]
