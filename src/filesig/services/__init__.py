"""Result export and reference loading services."""

from .export_service import ExportService, ReferenceLoader

__all__ = ["ExportService", "ReferenceLoader"]
