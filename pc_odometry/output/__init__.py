"""Result export module"""
from .result_exporter import ResultExporter, OdometryStatistics

__all__ = ['ResultExporter', 'OdometryStatistics']
