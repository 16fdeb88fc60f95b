"""
IMU 변화량 / 퓨전 정책 / 자세 적분 테스트
"""

import math

import pytest
import numpy as np

from pc_odometry.config.system_config import FusionConfig
from pc_odometry.estimation.delta_attitude import DeltaAttitudeTrack
from pc_odometry.estimation.fusion_policy import FusionPolicy, FusionDiagnostics
from pc_odometry.estimation.pose_converter import (
    Pose, EulerAngles, euler_to_rotation_matrix, rotation_matrix_to_euler
)
from pc_odometry.tracking.pose_integrator import PoseIntegrator


def rpy(roll: float, pitch: float, yaw: float) -> np.ndarray:
    return euler_to_rotation_matrix(EulerAngles(roll=roll, pitch=pitch, yaw=yaw))


class TestDeltaAttitudeTrack:
    """DeltaAttitudeTrack 테스트"""

    def test_record_before_prime_raises(self):
        track = DeltaAttitudeTrack()
        assert not track.is_primed

        with pytest.raises(RuntimeError):
            track.record_current(np.eye(3))

    def test_delta_is_relative_rotation(self):
        """delta @ previous == current"""
        previous = rpy(0.1, 0.0, 0.2)
        current = rpy(0.15, -0.05, 0.3)

        track = DeltaAttitudeTrack()
        track.prime(previous)
        delta = track.record_current(current)

        np.testing.assert_array_almost_equal(delta @ previous, current)
        np.testing.assert_array_almost_equal(track.previous, current)

    def test_unchanged_attitude_gives_identity(self):
        track = DeltaAttitudeTrack()
        track.prime(rpy(0.3, 0.2, 0.1))
        delta = track.record_current(rpy(0.3, 0.2, 0.1))

        np.testing.assert_array_almost_equal(delta, np.eye(3))

    def test_fifo_consumption(self):
        track = DeltaAttitudeTrack()
        track.prime(np.eye(3))
        first = track.record_current(rpy(0.1, 0.0, 0.0))
        track.record_current(rpy(0.1, 0.0, 0.2))

        assert track.pending == 2
        np.testing.assert_array_almost_equal(track.consume_oldest(), first)
        assert track.pending == 1
        assert track.produced == 2
        assert track.consumed == 1

    def test_consume_empty(self):
        track = DeltaAttitudeTrack()
        assert track.consume_oldest() is None
        assert track.consumed == 0

    def test_peek_does_not_consume(self):
        track = DeltaAttitudeTrack()
        assert track.peek_oldest() is None

        track.prime(np.eye(3))
        first = track.record_current(rpy(0.1, 0.0, 0.0))
        track.record_current(rpy(0.2, 0.0, 0.0))

        np.testing.assert_array_almost_equal(track.peek_oldest(), first)
        assert track.pending == 2
        assert track.consumed == 0


class TestFusionPolicy:
    """FusionPolicy 테스트"""

    def test_imu_off_passes_registration_through(self):
        policy = FusionPolicy(FusionConfig(use_imu=False))
        registration = Pose(translation=[0.1, 0.0, 0.0], rotation=rpy(0.05, 0.02, 0.3))

        fused, diag = policy.fuse(registration, rpy(0.0, 0.0, 0.0))

        assert fused.is_close(registration)
        assert not diag.imu_active
        assert not diag.fused

    def test_composite_rotation(self):
        """Roll/Pitch 는 IMU, Yaw 는 정합 결과"""
        policy = FusionPolicy(FusionConfig(use_imu=True))
        registration = Pose(translation=[0.2, 0.1, 0.0], rotation=rpy(0.05, -0.04, 0.3))
        imu_delta = rpy(0.01, 0.02, 0.5)

        fused, diag = policy.fuse(registration, imu_delta)
        result = rotation_matrix_to_euler(fused.rotation)

        assert result.roll == pytest.approx(0.01)
        assert result.pitch == pytest.approx(0.02)
        assert result.yaw == pytest.approx(0.3)
        np.testing.assert_array_equal(fused.translation, registration.translation)

        assert diag.fused
        assert diag.rpy_imu.yaw == pytest.approx(0.5)
        assert diag.rpy_registration.roll == pytest.approx(0.05)

    def test_no_queued_delta(self):
        """큐가 비어 있으면 정합 결과 그대로"""
        policy = FusionPolicy(FusionConfig(use_imu=True))
        registration = Pose(rotation=rpy(0.05, 0.0, 0.1))

        fused, diag = policy.fuse(registration, None)

        assert fused.is_close(registration)
        assert diag.imu_active
        assert not diag.fused

    def test_check_imu_off_keeps_mode(self):
        policy = FusionPolicy(FusionConfig(use_imu=True, check_imu=False))

        assert policy.decide_mode(10.0) is True
        assert policy.use_imu

    def test_check_imu_toggles(self):
        policy = FusionPolicy(FusionConfig(use_imu=False, check_imu=True, imu_threshold=0.05))

        assert policy.decide_mode(-0.01) is True
        assert policy.decide_mode(-0.2) is False
        assert policy.decide_mode(math.inf) is False
        assert policy.decide_mode(0.0) is True

    def test_threshold_is_strict(self):
        policy = FusionPolicy(FusionConfig(use_imu=True, check_imu=True, imu_threshold=0.05))
        assert policy.decide_mode(-0.05) is False

    def test_max_imu_rotation(self):
        config = FusionConfig(use_imu=True, check_imu=True, max_imu_rotation=0.1)
        policy = FusionPolicy(config)

        assert policy.decide_mode(-0.01, rpy(0.0, 0.0, 0.05)) is True
        assert policy.decide_mode(-0.01, rpy(0.0, 0.0, 0.5)) is False

    def test_diagnostics_carry_time_delta(self):
        policy = FusionPolicy(FusionConfig(use_imu=True))
        policy.decide_mode(-0.03)

        _, diag = policy.fuse(Pose.identity(), None)
        assert diag.time_delta == pytest.approx(-0.03)

    def test_diagnostics_to_dict(self):
        d = FusionDiagnostics(time_delta=-0.01, imu_active=False).to_dict()
        assert d['time_delta'] == -0.01
        assert d['imu_roll'] is None
        assert d['registration_yaw'] is None


class TestPoseIntegrator:
    """PoseIntegrator 테스트"""

    def test_identity_delta(self):
        initial = Pose(translation=[1.0, 2.0, 0.0], rotation=rpy(0.0, 0.0, 0.4))
        integrator = PoseIntegrator(initial_pose=initial)

        for _ in range(5):
            assert integrator.update(Pose.identity())

        assert integrator.integrated.is_close(initial)

    def test_accumulates(self):
        integrator = PoseIntegrator()
        step = Pose(translation=[0.1, 0.0, 0.0])

        for _ in range(10):
            integrator.update(step)

        np.testing.assert_array_almost_equal(integrator.integrated.translation, [1.0, 0.0, 0.0])
        assert integrator.num_accepted == 10

    def test_thresholding_disabled(self):
        integrator = PoseIntegrator(transform_thresholding=False, max_translation=0.1)
        assert integrator.update(Pose(translation=[5.0, 0.0, 0.0]))

    def test_rejects_large_translation(self):
        """거부된 증분은 incremental 로만 노출"""
        integrator = PoseIntegrator(transform_thresholding=True, max_translation=0.3, max_rotation=1.0)
        delta = Pose(translation=[0.5, 0.0, 0.0])

        accepted = integrator.update(delta)

        assert not accepted
        assert integrator.integrated.is_close(Pose.identity())
        assert integrator.incremental.translation_norm == pytest.approx(0.5)
        assert integrator.num_rejected == 1

    def test_rejects_large_rotation(self):
        integrator = PoseIntegrator(transform_thresholding=True, max_translation=1.0, max_rotation=0.1)
        assert not integrator.update(Pose(rotation=rpy(0.0, 0.0, 0.2)))

    def test_boundary_is_accepted(self):
        integrator = PoseIntegrator(transform_thresholding=True, max_translation=0.5, max_rotation=1.0)
        assert integrator.update(Pose(translation=[0.0, 0.5, 0.0]))

    def test_slightly_over_boundary(self):
        integrator = PoseIntegrator(transform_thresholding=True, max_translation=0.5, max_rotation=1.0)
        assert not integrator.update(Pose(translation=[0.5 + 1e-9, 0.0, 0.0]))

    def test_boundary_on_both_norms(self):
        """이동/회전 크기가 모두 정확히 임계값이면 허용"""
        delta = Pose(translation=[0.0, 0.5, 0.0], rotation=rpy(0.1, 0.2, 0.3))
        integrator = PoseIntegrator(transform_thresholding=True, max_translation=0.5,
                                    max_rotation=delta.rotation_norm)

        assert integrator.update(delta)
        assert integrator.num_accepted == 1

    def test_single_axis_rotation_boundary(self):
        integrator = PoseIntegrator(transform_thresholding=True, max_translation=1.0, max_rotation=0.2)
        assert integrator.update(Pose(rotation=rpy(0.0, 0.0, 0.2)))

    def test_rotation_slightly_over_boundary(self):
        delta = Pose(translation=[0.0, 0.5, 0.0], rotation=rpy(0.1, 0.2, 0.3))
        integrator = PoseIntegrator(transform_thresholding=True, max_translation=0.5,
                                    max_rotation=delta.rotation_norm - 1e-9)

        assert not integrator.update(delta)
        assert integrator.integrated.is_close(Pose.identity())


if __name__ == '__main__':
    pytest.main([__file__, '-v'])
