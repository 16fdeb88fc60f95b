"""
IMU-정합 퓨전 정책 모듈

정합(registration) 결과의 회전에서 Roll/Pitch 는 IMU 변화량으로,
Yaw 는 정합 결과 그대로 사용하는 합성 회전을 만듭니다.

- 점군 정합은 수평면 회전(Yaw)에 강하지만 수직 구조가 부족한 환경에서
  Roll/Pitch 가 드리프트하기 쉽습니다.
- IMU 는 짧은 구간의 Roll/Pitch 자세 변화에 정확하다고 가정합니다.

IMU 보조 모드(use_imu)는 이 정책 객체가 소유하며,
check_imu 가 켜져 있으면 매 사이클 시간 정합 품질에 따라 자동 전환됩니다.
"""

import math
from dataclasses import dataclass
from typing import Optional, Tuple, Dict, Any
import logging

import numpy as np

from .pose_converter import Pose, EulerAngles, rotation_matrix_to_euler, euler_to_rotation_matrix
from ..config.system_config import FusionConfig

logger = logging.getLogger(__name__)


@dataclass
class FusionDiagnostics:
    """사이클별 퓨전 진단 정보 (외부 확인/튜닝용)"""
    time_delta: float                          # IMU - 스캔 시간차 (초)
    imu_active: bool                           # 이번 사이클 IMU 보조 모드
    fused: bool = False                        # 합성 회전 적용 여부
    rpy_imu: Optional[EulerAngles] = None      # IMU 변화량 Roll/Pitch/Yaw
    rpy_registration: Optional[EulerAngles] = None  # 정합 결과 Roll/Pitch/Yaw

    def to_dict(self) -> Dict[str, Any]:
        """딕셔너리로 변환"""
        d = {
            'time_delta': self.time_delta,
            'imu_active': self.imu_active,
            'fused': self.fused,
        }
        for prefix, rpy in (('imu', self.rpy_imu), ('registration', self.rpy_registration)):
            d[f'{prefix}_roll'] = rpy.roll if rpy is not None else None
            d[f'{prefix}_pitch'] = rpy.pitch if rpy is not None else None
            d[f'{prefix}_yaw'] = rpy.yaw if rpy is not None else None
        return d


class FusionPolicy:
    """
    IMU 보조 모드 결정 및 회전 합성

    Example:
        >>> policy = FusionPolicy(FusionConfig(use_imu=True))
        >>> policy.decide_mode(time_delta=-0.01)
        >>> fused, diag = policy.fuse(registration_pose, imu_delta)
    """

    def __init__(self, config: FusionConfig):
        """
        Args:
            config: 퓨전 설정 (use_imu 는 초기값으로만 사용)
        """
        self.config = config
        self._use_imu = bool(config.use_imu)
        self._last_time_delta = math.inf

        logger.debug(f"FusionPolicy initialized: use_imu={self._use_imu}, "
                     f"check_imu={config.check_imu}")

    @property
    def use_imu(self) -> bool:
        """현재 IMU 보조 모드"""
        return self._use_imu

    def decide_mode(
        self,
        time_delta: float,
        imu_delta: Optional[np.ndarray] = None
    ) -> bool:
        """
        시간 정합 품질에 따른 IMU 보조 모드 결정

        check_imu 가 꺼져 있으면 현재 모드를 유지합니다.

        Args:
            time_delta: 정합된 IMU 샘플과 스캔의 시간차 (초)
            imu_delta: 이번 사이클 퓨전에 쓰일 IMU 회전 변화량, 즉 큐의 가장
                오래된 미소비 변화량 (max_imu_rotation 검사용)

        Returns:
            결정된 use_imu
        """
        self._last_time_delta = time_delta

        if not self.config.check_imu:
            return self._use_imu

        aligned = abs(time_delta) < self.config.imu_threshold

        if aligned and self.config.max_imu_rotation is not None and imu_delta is not None:
            imu_rotation = rotation_matrix_to_euler(imu_delta).norm
            if imu_rotation > self.config.max_imu_rotation:
                logger.warning(f"IMU rotation change too large: {imu_rotation:.4f} rad "
                               f"(max {self.config.max_imu_rotation:.4f})")
                aligned = False

        if not aligned:
            logger.warning(f"Bad IMU alignment: dt={time_delta:+.6f} s "
                           f"(threshold {self.config.imu_threshold:.6f} s)")

        if aligned != self._use_imu:
            logger.info(f"IMU assistance {'enabled' if aligned else 'disabled'} "
                        f"(dt={time_delta:+.6f} s)")

        self._use_imu = aligned
        return self._use_imu

    def fuse(
        self,
        registration: Pose,
        imu_delta: Optional[np.ndarray]
    ) -> Tuple[Pose, FusionDiagnostics]:
        """
        정합 결과에 IMU Roll/Pitch 합성

        Args:
            registration: 정합으로 구한 증분 변환
            imu_delta: 가장 오래된 미소비 IMU 회전 변화량 (없으면 None)

        Returns:
            (fused_pose, diagnostics). IMU 모드가 아니거나 변화량이 없으면
            정합 결과를 그대로 반환합니다.
        """
        diagnostics = FusionDiagnostics(
            time_delta=self._last_time_delta,
            imu_active=self._use_imu
        )

        if not self._use_imu:
            logger.debug("IMU OFF")
            return registration.copy(), diagnostics

        if imu_delta is None:
            logger.debug("IMU ON but no attitude delta queued, using registration only")
            return registration.copy(), diagnostics

        rpy_registration = rotation_matrix_to_euler(registration.rotation)
        rpy_imu = rotation_matrix_to_euler(imu_delta)

        # Roll, Pitch 는 IMU / Yaw 는 정합 결과
        composite = euler_to_rotation_matrix(EulerAngles(
            roll=rpy_imu.roll,
            pitch=rpy_imu.pitch,
            yaw=rpy_registration.yaw
        ))

        diagnostics.fused = True
        diagnostics.rpy_imu = rpy_imu
        diagnostics.rpy_registration = rpy_registration

        logger.debug(f"IMU ON: imu={rpy_imu}, registration={rpy_registration}")

        return registration.with_rotation(composite), diagnostics
