"""Data loading and IMU sample buffering module"""
from .attitude_buffer import AttitudeSampleBuffer, OrientationSample
from .timestamp_matcher import TimestampMatcher, find_aligned
from .data_loader import DataLoader, ScanFrame, ImuRecord

__all__ = ['AttitudeSampleBuffer', 'OrientationSample', 'TimestampMatcher', 'find_aligned',
           'DataLoader', 'ScanFrame', 'ImuRecord']
