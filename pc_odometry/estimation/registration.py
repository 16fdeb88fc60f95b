"""
점군 정합 모듈
연속 스캔 간 강체 변환을 Generalized-ICP 로 추정
"""

import numpy as np
from typing import Optional
import logging

import open3d as o3d

from ..config.system_config import RegistrationConfig

logger = logging.getLogger(__name__)


def to_open3d(points: np.ndarray, voxel_size: float = 0.0) -> o3d.geometry.PointCloud:
    """
    (N, 3) 배열을 Open3D PointCloud 로 변환

    Args:
        points: 3D 포인트 배열
        voxel_size: 0보다 크면 voxel 다운샘플링 적용
    """
    points = np.asarray(points, dtype=np.float64)
    if points.ndim != 2 or points.shape[1] != 3:
        raise ValueError(f"Expected (N, 3) point array, got {points.shape}")

    pcd = o3d.geometry.PointCloud()
    pcd.points = o3d.utility.Vector3dVector(points)

    if voxel_size > 0:
        pcd = pcd.voxel_down_sample(voxel_size)

    return pcd


class GicpRegistration:
    """
    Generalized-ICP 정합기

    수렴 실패 시에도 예외 없이 마지막 변환을 반환합니다.
    결과의 정확도는 보장되지 않으므로 호출 측에서 게이팅해야 합니다.
    """

    def __init__(self, config: Optional[RegistrationConfig] = None):
        """
        Args:
            config: 정합 설정 (epsilon, 대응 거리, 반복 횟수, voxel 크기)
        """
        self.config = config or RegistrationConfig()
        self.config.validate()

        self.last_fitness: float = 0.0
        self.last_inlier_rmse: float = 0.0

        logger.debug(f"GicpRegistration initialized: corr_dist={self.config.max_correspondence_distance}, "
                     f"iterations={self.config.max_iterations}")

    def __call__(
        self,
        query: np.ndarray,
        reference: np.ndarray,
        init: Optional[np.ndarray] = None
    ) -> np.ndarray:
        """
        query → reference 변환 추정

        Args:
            query: 최신 스캔 (N, 3)
            reference: 직전 스캔 (M, 3)
            init: 초기 추정 변환 (None 이면 항등)

        Returns:
            4x4 동차 변환 행렬
        """
        source = to_open3d(query, self.config.voxel_size)
        target = to_open3d(reference, self.config.voxel_size)

        if init is None:
            init = np.eye(4)

        criteria = o3d.pipelines.registration.ICPConvergenceCriteria(
            relative_fitness=self.config.epsilon,
            relative_rmse=self.config.epsilon,
            max_iteration=self.config.max_iterations
        )

        result = o3d.pipelines.registration.registration_generalized_icp(
            source, target,
            self.config.max_correspondence_distance,
            init,
            o3d.pipelines.registration.TransformationEstimationForGeneralizedICP(),
            criteria
        )

        self.last_fitness = float(result.fitness)
        self.last_inlier_rmse = float(result.inlier_rmse)

        logger.debug(f"GICP: fitness={result.fitness:.4f}, rmse={result.inlier_rmse:.6f}")

        return np.asarray(result.transformation, dtype=np.float64).copy()
