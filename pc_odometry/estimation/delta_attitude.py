"""
IMU 자세 변화량 추적 모듈
연속된 절대 자세를 스캔 간 회전 변화량으로 변환하여 큐에 보관
"""

from collections import deque
from typing import Deque, Optional
import logging

import numpy as np

logger = logging.getLogger(__name__)


class DeltaAttitudeTrack:
    """
    스캔 간 IMU 회전 변화량 큐

    사이클마다 delta = current @ previous^-1 을 계산해 큐에 넣고,
    정합 결과가 나올 때 가장 오래된 변화량부터 꺼내 씁니다.
    """

    def __init__(self):
        self._previous: Optional[np.ndarray] = None
        self._queue: Deque[np.ndarray] = deque()
        self.produced = 0
        self.consumed = 0

    @property
    def is_primed(self) -> bool:
        """이전 자세가 설정되었는지 여부"""
        return self._previous is not None

    @property
    def previous(self) -> Optional[np.ndarray]:
        return None if self._previous is None else self._previous.copy()

    @property
    def pending(self) -> int:
        """아직 소비되지 않은 변화량 수"""
        return len(self._queue)

    def prime(self, attitude: np.ndarray) -> None:
        """
        기준(이전) 자세 설정

        초기화 시 버퍼의 최초 수신 샘플 자세로 한 번 설정합니다.
        """
        self._previous = np.array(attitude, dtype=np.float64)
        logger.debug("Delta attitude track primed")

    def record_current(self, attitude: np.ndarray) -> np.ndarray:
        """
        현재 자세 기록 및 변화량 큐 적재

        Args:
            attitude: 이번 사이클에 정합된 3x3 자세

        Returns:
            delta: 이전 자세 → 현재 자세 회전 (3x3)
        """
        if self._previous is None:
            raise RuntimeError("DeltaAttitudeTrack.prime() must be called before record_current()")

        current = np.array(attitude, dtype=np.float64)
        # 회전 행렬의 역 = 전치
        delta = current @ self._previous.T

        self._queue.append(delta)
        self._previous = current
        self.produced += 1

        return delta.copy()

    def peek_oldest(self) -> Optional[np.ndarray]:
        """다음에 소비될 변화량 (큐에서 제거하지 않음)"""
        if not self._queue:
            return None
        return self._queue[0].copy()

    def consume_oldest(self) -> Optional[np.ndarray]:
        """가장 오래된 미소비 변화량 (없으면 None)"""
        if not self._queue:
            return None

        self.consumed += 1
        return self._queue.popleft()
