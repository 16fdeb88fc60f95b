"""
자세 적분 모듈
증분 변환 게이팅 및 누적 자세 갱신
"""

from typing import Optional, Tuple
import logging

from ..estimation.pose_converter import Pose

logger = logging.getLogger(__name__)


class PoseIntegrator:
    """
    증분 변환 누적기

    게이팅 임계값을 넘는 증분 변환은 누적 자세에 반영하지 않습니다.
    거부된 증분도 incremental 로는 그대로 노출되므로
    증분 출력과 누적 출력이 서로 달라질 수 있습니다.
    """

    def __init__(
        self,
        initial_pose: Optional[Pose] = None,
        transform_thresholding: bool = False,
        max_translation: float = 1.0,
        max_rotation: float = 1.0
    ):
        """
        Args:
            initial_pose: 초기 누적 자세 (None 이면 항등)
            transform_thresholding: 게이팅 사용 여부
            max_translation: 허용 최대 이동 크기 (m)
            max_rotation: 허용 최대 오일러 각도 벡터 크기 (rad)
        """
        self.transform_thresholding = transform_thresholding
        self.max_translation = max_translation
        self.max_rotation = max_rotation

        self.integrated: Pose = initial_pose.copy() if initial_pose is not None else Pose.identity()
        self.incremental: Pose = Pose.identity()

        self.num_accepted = 0
        self.num_rejected = 0

    def is_acceptable(self, delta: Pose) -> bool:
        """
        게이팅 검사 (경계값 포함 허용)

        회전 크기는 delta.rotation 에서 다시 추출한 오일러 각도 벡터의 크기
        (Pose.rotation_norm) 로 비교합니다. 추출 과정의 반올림 때문에
        생성에 쓴 각도의 크기와 1 ulp 정도 다를 수 있습니다.
        """
        if not self.transform_thresholding:
            return True

        return (delta.translation_norm <= self.max_translation
                and delta.rotation_norm <= self.max_rotation)

    def integrate(self, current: Pose, delta: Pose) -> Tuple[Pose, bool]:
        """
        증분 변환 적용

        Args:
            current: 현재 누적 자세
            delta: 이번 사이클 증분 변환

        Returns:
            (new_integrated, accepted)
        """
        if self.is_acceptable(delta):
            return current.compose(delta), True

        logger.warning(
            f"Discarding incremental transformation with norm "
            f"(t: {delta.translation_norm:.6f}, r: {delta.rotation_norm:.6f})"
        )
        return current, False

    def update(self, delta: Pose) -> bool:
        """
        내부 누적 자세 갱신

        Returns:
            accepted: 누적 자세에 반영되었는지 여부
        """
        self.incremental = delta
        self.integrated, accepted = self.integrate(self.integrated, delta)

        if accepted:
            self.num_accepted += 1
        else:
            self.num_rejected += 1

        return accepted
