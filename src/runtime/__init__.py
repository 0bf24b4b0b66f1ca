"""
runtime パッケージ公開 API。
"""

from .dependencies import (
    ExporterComponents,
    ServerSettings,
    bootstrap,
    build_exporter_components,
    build_status_source,
    project_root,
)

__all__ = [
    "ExporterComponents",
    "ServerSettings",
    "bootstrap",
    "build_exporter_components",
    "build_status_source",
    "project_root",
]
