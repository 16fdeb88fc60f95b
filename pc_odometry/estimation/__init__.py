"""Pose conversion, IMU delta attitude and fusion module"""
from .pose_converter import Pose, EulerAngles, Quaternion
from .delta_attitude import DeltaAttitudeTrack
from .fusion_policy import FusionPolicy, FusionDiagnostics

# registration (open3d) 은 필요할 때 직접 import
__all__ = ['Pose', 'EulerAngles', 'Quaternion', 'DeltaAttitudeTrack', 'FusionPolicy', 'FusionDiagnostics']
