"""
system_config.py - 시스템 설정 관리

pc_odometry 의 모든 설정을 통합 관리합니다.
YAML 키 구조는 기존 오도메트리 파라미터 배치를 따릅니다
(frame_id, fiducial_calibration, icp, imu, output).
"""

import yaml
from pathlib import Path
from dataclasses import dataclass, field, asdict
from typing import Dict, Any, Optional, List
import logging

logger = logging.getLogger(__name__)


@dataclass
class FrameConfig:
    """좌표계 ID 설정"""
    fixed: str = "world"
    odometry: str = "odometry"


@dataclass
class FiducialConfig:
    """초기 자세 (fiducial calibration)"""
    position: List[float] = field(default_factory=lambda: [0.0, 0.0, 0.0])
    # 쿼터니언 (x, y, z, w)
    orientation: Dict[str, float] = field(
        default_factory=lambda: {'x': 0.0, 'y': 0.0, 'z': 0.0, 'w': 1.0}
    )


@dataclass
class RegistrationConfig:
    """점군 정합(GICP) 설정"""
    epsilon: float = 1e-10
    max_correspondence_distance: float = 1.0
    max_iterations: int = 10
    voxel_size: float = 0.0  # 0 이면 다운샘플링 안함

    def validate(self):
        if self.max_correspondence_distance <= 0:
            raise ValueError(f"max_correspondence_distance must be positive, "
                             f"got {self.max_correspondence_distance}")
        if self.max_iterations <= 0:
            raise ValueError(f"max_iterations must be positive, got {self.max_iterations}")
        if self.voxel_size < 0:
            raise ValueError(f"voxel_size must be non-negative, got {self.voxel_size}")


@dataclass
class FusionConfig:
    """IMU 퓨전 및 게이팅 설정"""
    # IMU 보조 모드
    use_imu: bool = False
    check_imu: bool = False
    imu_threshold: float = 0.05             # 스캔-IMU 시간차 허용치 (초)
    max_imu_rotation: Optional[float] = None  # IMU 변화량 오일러 크기 허용치 (rad), None=미사용

    # 증분 변환 게이팅
    transform_thresholding: bool = False
    max_translation: float = 1.0
    max_rotation: float = 1.0

    def validate(self):
        if self.imu_threshold < 0:
            raise ValueError(f"imu_threshold must be non-negative, got {self.imu_threshold}")
        if self.max_translation < 0 or self.max_rotation < 0:
            raise ValueError("Gating thresholds must be non-negative")
        if self.max_imu_rotation is not None and self.max_imu_rotation < 0:
            raise ValueError(f"max_imu_rotation must be non-negative, got {self.max_imu_rotation}")


@dataclass
class OutputConfig:
    """출력 설정"""
    save_results: bool = True
    output_dir: str = "output"
    output_format: str = "csv"  # "csv" or "json"

    # 로깅
    log_level: str = "INFO"


@dataclass
class SystemConfig:
    """pc_odometry 전체 설정"""
    frame_id: FrameConfig = field(default_factory=FrameConfig)
    fiducial_calibration: Optional[FiducialConfig] = None
    icp: RegistrationConfig = field(default_factory=RegistrationConfig)
    imu: FusionConfig = field(default_factory=FusionConfig)
    output: OutputConfig = field(default_factory=OutputConfig)

    def validate(self) -> 'SystemConfig':
        self.icp.validate()
        self.imu.validate()
        return self

    def to_dict(self) -> Dict[str, Any]:
        return {
            'frame_id': asdict(self.frame_id),
            'fiducial_calibration': (asdict(self.fiducial_calibration)
                                     if self.fiducial_calibration is not None else None),
            'icp': asdict(self.icp),
            'imu': asdict(self.imu),
            'output': asdict(self.output),
        }

    def save(self, filepath: str):
        """설정을 YAML 파일로 저장"""
        with open(filepath, 'w') as f:
            yaml.safe_dump(self.to_dict(), f, default_flow_style=False)

        logger.info(f"Config saved to {filepath}")

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> 'SystemConfig':
        """딕셔너리에서 설정 생성"""
        fiducial = d.get('fiducial_calibration')
        if fiducial is None:
            logger.warning("Can't find fiducial calibration, using origin")

        return cls(
            frame_id=FrameConfig(**(d.get('frame_id') or {})),
            fiducial_calibration=FiducialConfig(**fiducial) if fiducial else None,
            icp=RegistrationConfig(**(d.get('icp') or {})),
            imu=FusionConfig(**(d.get('imu') or {})),
            output=OutputConfig(**(d.get('output') or {})),
        ).validate()


def load_config(filepath: str) -> SystemConfig:
    """
    YAML 파일에서 설정 로드

    Args:
        filepath: 설정 파일 경로

    Returns:
        SystemConfig: 로드된 설정
    """
    path = Path(filepath)

    if not path.exists():
        logger.warning(f"Config file not found: {filepath}, using defaults")
        return SystemConfig()

    with open(path, 'r') as f:
        config_dict = yaml.safe_load(f)

    if config_dict is None:
        return SystemConfig()

    return SystemConfig.from_dict(config_dict)


def create_default_config(save_path: Optional[str] = None) -> SystemConfig:
    """
    기본 설정 생성

    Args:
        save_path: 저장 경로 (None이면 저장 안함)
    """
    config = SystemConfig()

    if save_path:
        config.save(save_path)

    return config
