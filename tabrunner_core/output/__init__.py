"""
Output stage - artifacts and delivery collaborators
"""

from .builder import OutputArtifact, OutputBuilder
from .services import (
    DownloadService,
    GoogleSheetsService,
    LocalDownloadService,
    SpreadsheetService,
)

__all__ = [
    'OutputArtifact',
    'OutputBuilder',
    'DownloadService',
    'GoogleSheetsService',
    'LocalDownloadService',
    'SpreadsheetService',
]
