"""
타임스탬프 정합 모듈
스캔 시각에 가장 잘 맞는 IMU 자세 샘플 선택
"""

import math
from typing import Sequence, Tuple, Optional
import logging

from .attitude_buffer import OrientationSample

logger = logging.getLogger(__name__)

# 인과적으로 앞선 샘플이 없을 때 보고하는 시간차
NO_MATCH_DELTA = math.inf


class TimestampMatcher:
    """
    스캔-IMU 시간 정합기

    스캔 시각 이전(또는 같은 시각)의 샘플 중 가장 최근 샘플을 선택합니다.
    미래 샘플은 선택하지 않으며 보간도 하지 않습니다.
    """

    def find_aligned(
        self,
        snapshot: Sequence[OrientationSample],
        target_timestamp: float
    ) -> Tuple[Optional[OrientationSample], float]:
        """
        정합 샘플 탐색

        Args:
            snapshot: 버퍼 스냅샷 (오래된 순)
            target_timestamp: 스캔 타임스탬프 (초)

        Returns:
            (sample, time_delta): time_delta = sample.timestamp - target_timestamp.
            앞선 샘플이 없으면 가장 오래된 샘플과 NO_MATCH_DELTA,
            스냅샷이 비어 있으면 (None, NO_MATCH_DELTA)
        """
        if len(snapshot) == 0:
            logger.debug(f"No orientation samples to align with t={target_timestamp:.6f}")
            return None, NO_MATCH_DELTA

        best = snapshot[0]
        best_delta = NO_MATCH_DELTA

        for sample in snapshot:
            delta = sample.timestamp - target_timestamp
            if delta <= 0 and abs(delta) < abs(best_delta):
                best = sample
                best_delta = delta

        if best_delta == NO_MATCH_DELTA:
            logger.debug(
                f"No causally-prior sample for t={target_timestamp:.6f}, "
                f"falling back to oldest (t={best.timestamp:.6f})"
            )
        else:
            logger.debug(f"Aligned scan t={target_timestamp:.6f} with IMU dt={best_delta:+.6f}")

        return best, best_delta


def find_aligned(
    snapshot: Sequence[OrientationSample],
    target_timestamp: float
) -> Tuple[Optional[OrientationSample], float]:
    """TimestampMatcher.find_aligned 편의 함수"""
    return TimestampMatcher().find_aligned(snapshot, target_timestamp)
