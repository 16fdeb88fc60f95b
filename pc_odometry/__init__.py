"""
pc_odometry: 연속 점군 정합 + IMU 자세 퓨전 기반 오도메트리
"""

__version__ = "1.0.0"
__author__ = "Fursys Image Processing Team"

from .config.system_config import SystemConfig, FusionConfig, RegistrationConfig, load_config
from .data.attitude_buffer import AttitudeSampleBuffer, OrientationSample
from .data.timestamp_matcher import TimestampMatcher
from .data.data_loader import DataLoader, ScanFrame
from .estimation.pose_converter import Pose, EulerAngles, Quaternion
from .estimation.delta_attitude import DeltaAttitudeTrack
from .estimation.fusion_policy import FusionPolicy, FusionDiagnostics
from .tracking.pose_integrator import PoseIntegrator
from .tracking.point_cloud_odometry import PointCloudOdometry, OdometryResult, OdometryState
from .output.result_exporter import ResultExporter, OdometryStatistics

__all__ = [
    'SystemConfig',
    'FusionConfig',
    'RegistrationConfig',
    'load_config',
    'AttitudeSampleBuffer',
    'OrientationSample',
    'TimestampMatcher',
    'DataLoader',
    'ScanFrame',
    'Pose',
    'EulerAngles',
    'Quaternion',
    'DeltaAttitudeTrack',
    'FusionPolicy',
    'FusionDiagnostics',
    'PoseIntegrator',
    'PointCloudOdometry',
    'OdometryResult',
    'OdometryState',
    'ResultExporter',
    'OdometryStatistics',
]
