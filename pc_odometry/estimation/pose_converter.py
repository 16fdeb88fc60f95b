"""
pose_converter.py - 강체 자세 표현 및 변환 모듈

오도메트리 전 구간에서 사용하는 자세 타입과 회전 표현 변환을 제공합니다.
- Pose: 이동 벡터 + 3x3 회전 행렬
- 오일러 각도 (Roll, Pitch, Yaw, 라디안) - 게이팅/퓨전/진단용
- 쿼터니언 (x, y, z, w) - IMU 입력 및 결과 저장용

오일러 규약:
    R = Rz(yaw) @ Ry(pitch) @ Rx(roll)
    scipy 기준 외재적(extrinsic) 'xyz' 순서 (X 먼저, 다음 Y, 마지막 Z)
"""

import numpy as np
from scipy.spatial.transform import Rotation
from typing import Dict, Any, Optional, Sequence
from dataclasses import dataclass, field
import logging

logger = logging.getLogger(__name__)

EULER_ORDER = 'xyz'


@dataclass
class EulerAngles:
    """
    오일러 각도 (radians)

    Attributes:
        roll: X축 회전
        pitch: Y축 회전
        yaw: Z축 회전
    """
    roll: float
    pitch: float
    yaw: float

    def to_array(self) -> np.ndarray:
        """numpy 배열로 변환 [roll, pitch, yaw]"""
        return np.array([self.roll, self.pitch, self.yaw])

    def to_degrees(self) -> 'EulerAngles':
        """도 단위로 변환"""
        return EulerAngles(
            roll=float(np.rad2deg(self.roll)),
            pitch=float(np.rad2deg(self.pitch)),
            yaw=float(np.rad2deg(self.yaw))
        )

    @property
    def norm(self) -> float:
        """[roll, pitch, yaw] 벡터 크기"""
        return float(np.linalg.norm(self.to_array()))

    def __repr__(self) -> str:
        return f"EulerAngles(R={self.roll:.4f}, P={self.pitch:.4f}, Y={self.yaw:.4f})"


@dataclass
class Quaternion:
    """
    쿼터니언 (x, y, z, w) - scipy/ROS 형식
    """
    x: float
    y: float
    z: float
    w: float

    def to_array(self) -> np.ndarray:
        """[x, y, z, w] 형식 (scipy 표준)"""
        return np.array([self.x, self.y, self.z, self.w])

    def normalize(self) -> 'Quaternion':
        """단위 쿼터니언으로 정규화"""
        arr = self.to_array()
        norm = np.linalg.norm(arr)
        if norm < 1e-10:
            raise ValueError("Cannot normalize a zero-norm quaternion")
        arr = arr / norm
        return Quaternion(x=float(arr[0]), y=float(arr[1]), z=float(arr[2]), w=float(arr[3]))

    @classmethod
    def identity(cls) -> 'Quaternion':
        """단위 쿼터니언 (회전 없음)"""
        return cls(x=0.0, y=0.0, z=0.0, w=1.0)

    @classmethod
    def from_rotation_matrix(cls, R: np.ndarray) -> 'Quaternion':
        """회전 행렬에서 쿼터니언으로 변환"""
        quat = Rotation.from_matrix(R).as_quat()
        return cls(x=float(quat[0]), y=float(quat[1]), z=float(quat[2]), w=float(quat[3]))

    def __repr__(self) -> str:
        return f"Quaternion(x={self.x:.4f}, y={self.y:.4f}, z={self.z:.4f}, w={self.w:.4f})"


def quaternion_to_rotation_matrix(quaternion: Sequence[float]) -> np.ndarray:
    """
    [x, y, z, w] 쿼터니언을 정규화하여 회전 행렬로 변환

    Raises:
        ValueError: 크기가 0이거나 원소 수가 4가 아닌 경우
    """
    quat = np.asarray(quaternion, dtype=np.float64).reshape(-1)
    if quat.shape != (4,):
        raise ValueError(f"Expected quaternion [x, y, z, w], got shape {quat.shape}")
    if np.linalg.norm(quat) < 1e-10:
        raise ValueError("Cannot build a rotation from a zero-norm quaternion")
    # from_quat 가 내부적으로 정규화
    return Rotation.from_quat(quat).as_matrix()


def rotation_matrix_to_euler(R: np.ndarray) -> EulerAngles:
    """회전 행렬에서 오일러 각도 (roll, pitch, yaw) 추출"""
    roll, pitch, yaw = Rotation.from_matrix(R).as_euler(EULER_ORDER)
    return EulerAngles(roll=float(roll), pitch=float(pitch), yaw=float(yaw))


def euler_to_rotation_matrix(euler: EulerAngles) -> np.ndarray:
    """
    오일러 각도에서 회전 행렬 구성

    단일 축 회전을 X → Y → Z 순서로 적용합니다.
    rotation_matrix_to_euler 와 같은 규약이므로 왕복 시 각도가 보존됩니다.
    """
    return Rotation.from_euler(EULER_ORDER, euler.to_array()).as_matrix()


def _as_rotation_matrix(R: np.ndarray) -> np.ndarray:
    R = np.asarray(R, dtype=np.float64)
    if R.shape != (3, 3):
        raise ValueError(f"Expected 3x3 rotation matrix, got {R.shape}")
    return R


@dataclass
class Pose:
    """
    강체 자세 (SE(3))

    이동 벡터와 회전 행렬로 구성됩니다.
    증분 추정(incremental)과 누적 추정(integrated) 모두 이 타입을 사용합니다.
    """
    translation: np.ndarray = field(default_factory=lambda: np.zeros(3))  # [x, y, z]
    rotation: np.ndarray = field(default_factory=lambda: np.eye(3))       # 3x3

    def __post_init__(self):
        self.translation = np.asarray(self.translation, dtype=np.float64).reshape(-1)
        if self.translation.shape != (3,):
            raise ValueError(f"Expected 3-vector translation, got {self.translation.shape}")
        self.rotation = _as_rotation_matrix(self.rotation)

    @classmethod
    def identity(cls) -> 'Pose':
        """항등 자세"""
        return cls()

    @classmethod
    def from_matrix(cls, matrix: np.ndarray) -> 'Pose':
        """
        4x4 동차 변환 행렬에서 생성

        Args:
            matrix: 4x4 변환 행렬 [R|t; 0 1]
        """
        matrix = np.asarray(matrix, dtype=np.float64)
        if matrix.shape != (4, 4):
            raise ValueError(f"Expected 4x4 matrix, got {matrix.shape}")
        return cls(translation=matrix[:3, 3].copy(), rotation=matrix[:3, :3].copy())

    @classmethod
    def from_position_quaternion(
        cls,
        position: Sequence[float],
        quaternion: Optional[Quaternion] = None
    ) -> 'Pose':
        """위치 + 쿼터니언에서 생성 (fiducial 초기 자세용)"""
        if quaternion is None:
            quaternion = Quaternion.identity()
        return cls(
            translation=np.asarray(position, dtype=np.float64),
            rotation=quaternion_to_rotation_matrix(quaternion.to_array())
        )

    def to_matrix(self) -> np.ndarray:
        """4x4 동차 변환 행렬"""
        T = np.eye(4)
        T[:3, :3] = self.rotation
        T[:3, 3] = self.translation
        return T

    def compose(self, delta: 'Pose') -> 'Pose':
        """
        자세 갱신: 현재 자세 좌표계에서 증분 변환 적용

        t = t1 + R1 @ t2
        R = R1 @ R2
        """
        return Pose(
            translation=self.translation + self.rotation @ delta.translation,
            rotation=self.rotation @ delta.rotation
        )

    def with_rotation(self, rotation: np.ndarray) -> 'Pose':
        """회전 블록만 교체한 새 자세 (이동은 유지)"""
        return Pose(translation=self.translation.copy(), rotation=rotation)

    def copy(self) -> 'Pose':
        return Pose(translation=self.translation.copy(), rotation=self.rotation.copy())

    def euler(self) -> EulerAngles:
        """회전의 오일러 각도"""
        return rotation_matrix_to_euler(self.rotation)

    def quaternion(self) -> Quaternion:
        """회전의 쿼터니언"""
        return Quaternion.from_rotation_matrix(self.rotation)

    @property
    def translation_norm(self) -> float:
        return float(np.linalg.norm(self.translation))

    @property
    def rotation_norm(self) -> float:
        """오일러 각도 벡터 크기 (게이팅 기준)"""
        return self.euler().norm

    def is_close(self, other: 'Pose', atol: float = 1e-9) -> bool:
        return (np.allclose(self.translation, other.translation, atol=atol)
                and np.allclose(self.rotation, other.rotation, atol=atol))

    def to_dict(self) -> Dict[str, Any]:
        """딕셔너리로 변환"""
        q = self.quaternion()
        e = self.euler()
        return {
            'translation': self.translation.tolist(),
            'quaternion': {'x': q.x, 'y': q.y, 'z': q.z, 'w': q.w},
            'euler': {'roll': e.roll, 'pitch': e.pitch, 'yaw': e.yaw},
        }
