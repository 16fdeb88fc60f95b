"""
점군 오도메트리 모듈

스캔 입력마다 다음 사이클을 수행합니다.
1. IMU 버퍼 스냅샷 → 스캔 시각 정합
2. 점군 정합 (query ← 신규 스캔, reference ← 직전 스캔)
3. IMU 자세 변화량 계산/적재
4. IMU 보조 모드 결정 및 스캔 쌍 갱신
5. 퓨전 정책 적용
6. 게이팅 후 누적 자세 갱신

정합이 예외를 던지면 큐와 스캔 쌍은 바뀌지 않습니다.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional, Sequence, Dict, Any
import logging

import numpy as np

from ..config.system_config import SystemConfig, FusionConfig, FiducialConfig
from ..data.attitude_buffer import AttitudeSampleBuffer, OrientationSample, DEFAULT_CAPACITY
from ..data.timestamp_matcher import TimestampMatcher
from ..estimation.delta_attitude import DeltaAttitudeTrack
from ..estimation.fusion_policy import FusionPolicy, FusionDiagnostics
from ..estimation.pose_converter import Pose, Quaternion, quaternion_to_rotation_matrix
from .pose_integrator import PoseIntegrator

logger = logging.getLogger(__name__)

# (query, reference) -> query 를 reference 에 맞추는 4x4 변환
RegistrationFn = Callable[[np.ndarray, np.ndarray], np.ndarray]


class OdometryState(Enum):
    """오도메트리 상태"""
    UNINITIALIZED = "uninitialized"
    INITIALIZED = "initialized"


@dataclass
class ScanPair:
    """정합 대상 스캔 쌍 (사이클마다 통째로 교체)"""
    reference: Optional[np.ndarray] = None
    query: Optional[np.ndarray] = None


@dataclass
class OdometryResult:
    """사이클 결과"""
    timestamp: float
    incremental: Pose
    integrated: Pose
    accepted: bool
    diagnostics: FusionDiagnostics

    def to_dict(self) -> Dict[str, Any]:
        """평탄화된 딕셔너리 (CSV 저장용)"""
        d = {'timestamp': self.timestamp, 'accepted': self.accepted}
        for name, pose in (('inc', self.incremental), ('int', self.integrated)):
            q = pose.quaternion()
            d.update({
                f'{name}_tx': pose.translation[0],
                f'{name}_ty': pose.translation[1],
                f'{name}_tz': pose.translation[2],
                f'{name}_qx': q.x,
                f'{name}_qy': q.y,
                f'{name}_qz': q.z,
                f'{name}_qw': q.w,
            })
        d['inc_translation_norm'] = self.incremental.translation_norm
        d['inc_rotation_norm'] = self.incremental.rotation_norm
        d.update(self.diagnostics.to_dict())
        return d


def fiducial_to_pose(fiducial: Optional[FiducialConfig]) -> Pose:
    """fiducial 설정을 초기 자세로 변환 (없으면 항등)"""
    if fiducial is None:
        return Pose.identity()

    o = fiducial.orientation
    return Pose.from_position_quaternion(
        fiducial.position,
        Quaternion(x=o.get('x', 0.0), y=o.get('y', 0.0), z=o.get('z', 0.0), w=o.get('w', 1.0))
    )


def _as_points(points: np.ndarray) -> np.ndarray:
    points = np.array(points, dtype=np.float64)
    if points.ndim != 2 or points.shape[1] != 3:
        raise ValueError(f"Expected (N, 3) point array, got {points.shape}")
    return points


class PointCloudOdometry:
    """
    점군 + IMU 자세 퓨전 오도메트리

    ingest() 는 IMU 수신 스레드에서, process_scan() 은 스캔 처리 스레드에서
    호출될 수 있습니다. process_scan() 은 재진입하지 않는다고 가정합니다.

    Example:
        >>> odom = PointCloudOdometry(FusionConfig(use_imu=True), registration=GicpRegistration())
        >>> odom.ingest([0, 0, 0, 1], 0.00)
        >>> odom.process_scan(scan0, 0.05)   # None (초기화)
        >>> result = odom.process_scan(scan1, 0.15)
    """

    def __init__(
        self,
        fusion_config: Optional[FusionConfig] = None,
        registration: Optional[RegistrationFn] = None,
        initial_pose: Optional[Pose] = None,
        buffer_capacity: int = DEFAULT_CAPACITY
    ):
        """
        Args:
            fusion_config: 퓨전/게이팅 설정
            registration: 정합 함수 (query, reference) -> 4x4
            initial_pose: 초기 누적 자세 (fiducial)
            buffer_capacity: IMU 자세 버퍼 크기
        """
        self.fusion_config = fusion_config or FusionConfig()
        self.fusion_config.validate()

        if registration is None:
            from ..estimation.registration import GicpRegistration
            registration = GicpRegistration()
        self.registration = registration

        self.buffer = AttitudeSampleBuffer(capacity=buffer_capacity)
        self.matcher = TimestampMatcher()
        self.delta_track = DeltaAttitudeTrack()
        self.policy = FusionPolicy(self.fusion_config)
        self.integrator = PoseIntegrator(
            initial_pose=initial_pose,
            transform_thresholding=self.fusion_config.transform_thresholding,
            max_translation=self.fusion_config.max_translation,
            max_rotation=self.fusion_config.max_rotation
        )

        self.state = OdometryState.UNINITIALIZED
        self.scan_pair = ScanPair()
        self.last_timestamp: Optional[float] = None

        logger.info(f"PointCloudOdometry initialized: use_imu={self.fusion_config.use_imu}, "
                    f"check_imu={self.fusion_config.check_imu}, "
                    f"thresholding={self.fusion_config.transform_thresholding}")

    @classmethod
    def from_config(
        cls,
        config: SystemConfig,
        registration: Optional[RegistrationFn] = None
    ) -> 'PointCloudOdometry':
        """SystemConfig 로부터 생성"""
        if registration is None:
            from ..estimation.registration import GicpRegistration
            registration = GicpRegistration(config.icp)

        return cls(
            fusion_config=config.imu,
            registration=registration,
            initial_pose=fiducial_to_pose(config.fiducial_calibration)
        )

    @property
    def initialized(self) -> bool:
        return self.state == OdometryState.INITIALIZED

    @property
    def imu_primed(self) -> bool:
        """IMU 샘플을 한 번이라도 받았는지 여부"""
        return self.buffer.has_samples

    @property
    def incremental_estimate(self) -> Pose:
        return self.integrator.incremental

    @property
    def integrated_estimate(self) -> Pose:
        return self.integrator.integrated

    def ingest(self, quaternion: Sequence[float], timestamp: float) -> None:
        """
        IMU 방향 샘플 입력

        Args:
            quaternion: [x, y, z, w] (정규화되지 않아도 됨)
            timestamp: 샘플 시각 (초)
        """
        attitude = quaternion_to_rotation_matrix(quaternion)
        self.buffer.push(OrientationSample(attitude=attitude, timestamp=timestamp))

    def get_last_point_cloud(self) -> Optional[np.ndarray]:
        """가장 최근 스캔 (초기화 전이면 None)"""
        if not self.initialized or self.scan_pair.query is None:
            logger.warning("PointCloudOdometry: Not initialized.")
            return None
        return self.scan_pair.query

    def process_scan(self, points: np.ndarray, timestamp: float) -> Optional[OdometryResult]:
        """
        스캔 처리

        Args:
            points: 스캔 점군 (N, 3)
            timestamp: 스캔 시각 (초)

        Returns:
            OdometryResult. 초기화 단계에서는 None (갱신 없음)
        """
        points = _as_points(points)
        self.last_timestamp = float(timestamp)

        # 수신 스레드와의 경합을 피하기 위해 먼저 복사본 확보
        snapshot = self.buffer.snapshot()

        if not self.initialized:
            return self._initialize(points)

        # 1. 시간 정합
        sample, time_delta = self.matcher.find_aligned(snapshot, timestamp)

        # 2. 점군 정합 (예외 시 이 스캔은 상태 변경 없이 버려짐)
        transform = self.registration(points, self.scan_pair.query)
        registration_pose = Pose.from_matrix(transform)

        # 3. IMU 자세 변화량 적재
        if sample is not None:
            if not self.delta_track.is_primed:
                # IMU 없이 초기화된 뒤 샘플이 들어오기 시작한 경우
                self.delta_track.prime(self.buffer.first_sample.attitude)
            self.delta_track.record_current(sample.attitude)

        # 4. IMU 보조 모드 결정 (퓨전에 쓰일 가장 오래된 변화량으로 검사)
        self.policy.decide_mode(time_delta, self.delta_track.peek_oldest())

        # 스캔 쌍 갱신
        self.scan_pair = ScanPair(reference=self.scan_pair.query, query=points)

        # 5. 퓨전
        queued_delta = self.delta_track.consume_oldest() if self.policy.use_imu else None
        incremental, diagnostics = self.policy.fuse(registration_pose, queued_delta)

        # 6. 게이팅 및 누적
        accepted = self.integrator.update(incremental)

        return OdometryResult(
            timestamp=self.last_timestamp,
            incremental=incremental.copy(),
            integrated=self.integrator.integrated.copy(),
            accepted=accepted,
            diagnostics=diagnostics
        )

    def _initialize(self, points: np.ndarray) -> None:
        """첫 스캔 저장 및 초기화 시도"""
        self.scan_pair = ScanPair(reference=None, query=points)

        if self.fusion_config.use_imu and not self.imu_primed:
            logger.info("Waiting for the first orientation sample before initializing")
            return None

        first = self.buffer.first_sample
        if first is not None:
            self.delta_track.prime(first.attitude)

        self.state = OdometryState.INITIALIZED
        logger.info(f"Odometry initialized at t={self.last_timestamp:.6f}")
        return None
