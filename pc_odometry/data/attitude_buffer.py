"""
자세(attitude) 샘플 버퍼 모듈
IMU 방향 스트림을 고정 크기 FIFO 로 보관
"""

import threading
from collections import deque
from dataclasses import dataclass
from typing import Deque, List, Optional
import logging

import numpy as np

logger = logging.getLogger(__name__)

DEFAULT_CAPACITY = 100


@dataclass(frozen=True, eq=False)
class OrientationSample:
    """타임스탬프가 붙은 절대 자세 샘플 (생성 후 불변)"""
    attitude: np.ndarray  # 3x3 회전 행렬
    timestamp: float      # 초 단위

    def __post_init__(self):
        attitude = np.array(self.attitude, dtype=np.float64)
        if attitude.shape != (3, 3):
            raise ValueError(f"Expected 3x3 attitude, got {attitude.shape}")
        attitude.setflags(write=False)
        object.__setattr__(self, 'attitude', attitude)
        object.__setattr__(self, 'timestamp', float(self.timestamp))


class AttitudeSampleBuffer:
    """
    스레드 안전 자세 샘플 링 버퍼

    IMU 수신 경로(별도 스레드 가능)가 push 하고,
    스캔 처리 사이클은 snapshot() 으로 복사본을 받아 사용합니다.
    용량 초과 시 가장 오래된 샘플부터 제거됩니다.
    """

    def __init__(self, capacity: int = DEFAULT_CAPACITY):
        """
        Args:
            capacity: 최대 보관 샘플 수
        """
        if capacity <= 0:
            raise ValueError(f"capacity must be positive, got {capacity}")

        self._lock = threading.Lock()
        self._samples: Deque[OrientationSample] = deque(maxlen=capacity)
        self._first_sample: Optional[OrientationSample] = None

    @property
    def capacity(self) -> int:
        return self._samples.maxlen

    def push(self, sample: OrientationSample) -> None:
        """샘플 추가 (가득 차면 가장 오래된 샘플 제거)"""
        with self._lock:
            self._samples.append(sample)
            first = self._first_sample is None
            if first:
                self._first_sample = sample

        if first:
            logger.info(f"First orientation sample received at t={sample.timestamp:.6f}")

    def snapshot(self) -> List[OrientationSample]:
        """현재 내용의 독립 복사본 (오래된 순)"""
        with self._lock:
            return list(self._samples)

    @property
    def first_sample(self) -> Optional[OrientationSample]:
        """최초 수신 샘플 (한 번 설정되면 고정)"""
        with self._lock:
            return self._first_sample

    @property
    def has_samples(self) -> bool:
        """샘플을 한 번이라도 받았는지 여부"""
        return self.first_sample is not None

    def __len__(self) -> int:
        with self._lock:
            return len(self._samples)
