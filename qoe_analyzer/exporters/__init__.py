"""
Exports JSON et CSV des données QoE
"""

from .csv_export import CSVExporter
from .json_export import JSONExporter

__all__ = ["CSVExporter", "JSONExporter"]
