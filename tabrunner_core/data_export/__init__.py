"""
Data export - CSV and text rendering of collected rows
"""

from .data_exporter import DataExporter, render_csv

__all__ = ['DataExporter', 'render_csv']
