"""Pose integration and odometry cycle module"""
from .pose_integrator import PoseIntegrator
from .point_cloud_odometry import PointCloudOdometry, OdometryResult, OdometryState

__all__ = ['PoseIntegrator', 'PointCloudOdometry', 'OdometryResult', 'OdometryState']
