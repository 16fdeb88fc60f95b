"""
데이터 로더 모듈
스캔 시퀀스와 IMU 방향 데이터를 통합 로드하는 클래스

디렉토리 구조:
    data_dir/
        scans.csv       - timestamp,filename
        scans/*.npy     - (N, 3) 점군 (또는 .pcd / .ply)
        imu_data.csv    - timestamp,qx,qy,qz,qw (옵션)
"""

import numpy as np
import pandas as pd
from dataclasses import dataclass
from typing import Optional, List, Iterator
from pathlib import Path
import logging

logger = logging.getLogger(__name__)

IMU_COLUMNS = ['timestamp', 'qx', 'qy', 'qz', 'qw']


@dataclass
class ScanFrame:
    """단일 스캔 데이터"""
    scan_idx: int
    timestamp: float
    points: np.ndarray  # (N, 3)
    path: Optional[str] = None

    @property
    def num_points(self) -> int:
        return len(self.points)


@dataclass
class ImuRecord:
    """IMU 방향 샘플 한 건"""
    timestamp: float
    quaternion: np.ndarray  # [x, y, z, w]


class DataLoader:
    """
    스캔 + IMU 데이터 통합 로더

    사용법:
        loader = DataLoader("./run_01")
        for frame in loader:
            process(frame)
    """

    def __init__(self, data_dir: str, scan_index_file: str = 'scans.csv'):
        """
        Args:
            data_dir: 데이터 디렉토리 경로
            scan_index_file: 스캔 목록 CSV 파일명
        """
        self.data_dir = Path(data_dir)

        if not self.data_dir.exists():
            raise FileNotFoundError(f"Data directory not found: {data_dir}")

        self._load_scan_index(scan_index_file)
        self._load_imu_data()

        logger.info(f"DataLoader initialized: {self.num_scans} scans, "
                    f"IMU: {'available' if self.has_imu else 'not available'}")

    def _load_scan_index(self, scan_index_file: str):
        """스캔 목록 로드 (시각 순 정렬)"""
        index_path = self.data_dir / scan_index_file
        if not index_path.exists():
            raise FileNotFoundError(f"Scan index not found: {index_path}")

        df = pd.read_csv(index_path)
        missing = {'timestamp', 'filename'} - set(df.columns)
        if missing:
            raise ValueError(f"Scan index is missing columns: {sorted(missing)}")

        self.scan_df = df.sort_values('timestamp').reset_index(drop=True)
        self.num_scans = len(self.scan_df)

        if self.num_scans == 0:
            raise ValueError(f"No scans listed in {index_path}")

    def _load_imu_data(self):
        """IMU 데이터 로드"""
        imu_path = self.data_dir / 'imu_data.csv'
        self.imu_df = None
        self.has_imu = False

        if not imu_path.exists():
            logger.warning(f"IMU data not found: {imu_path}")
            return

        df = pd.read_csv(imu_path)
        missing = set(IMU_COLUMNS) - set(df.columns)
        if missing:
            raise ValueError(f"IMU data is missing columns: {sorted(missing)}")

        if len(df) == 0:
            logger.warning(f"IMU data is empty: {imu_path}")
            return

        self.imu_df = df[IMU_COLUMNS].sort_values('timestamp').reset_index(drop=True)
        self.has_imu = True
        logger.info(f"Loaded {len(self.imu_df)} IMU samples")

    def _load_points(self, path: Path) -> np.ndarray:
        """점군 파일 로드"""
        suffix = path.suffix.lower()

        if suffix == '.npy':
            points = np.load(path)
        elif suffix in ('.pcd', '.ply'):
            import open3d as o3d
            points = np.asarray(o3d.io.read_point_cloud(str(path)).points)
        else:
            raise ValueError(f"Unsupported scan format: {path.name}")

        points = np.asarray(points, dtype=np.float64)
        if points.ndim != 2 or points.shape[1] < 3:
            raise ValueError(f"Invalid point array in {path.name}: {points.shape}")

        return points[:, :3]

    def load_scan(self, idx: int) -> ScanFrame:
        """
        인덱스로 스캔 로드

        Args:
            idx: 스캔 인덱스
        """
        if idx < 0 or idx >= self.num_scans:
            raise IndexError(f"Scan index {idx} out of range (0-{self.num_scans - 1})")

        row = self.scan_df.iloc[idx]
        path = self.data_dir / str(row['filename'])

        return ScanFrame(
            scan_idx=idx,
            timestamp=float(row['timestamp']),
            points=self._load_points(path),
            path=str(path)
        )

    def imu_records(self, t_start: float = -np.inf, t_end: float = np.inf) -> List[ImuRecord]:
        """t_start < t <= t_end 구간의 IMU 샘플"""
        if not self.has_imu:
            return []

        mask = (self.imu_df['timestamp'] > t_start) & (self.imu_df['timestamp'] <= t_end)
        return [
            ImuRecord(timestamp=float(r.timestamp),
                      quaternion=np.array([r.qx, r.qy, r.qz, r.qw]))
            for r in self.imu_df[mask].itertuples(index=False)
        ]

    def get_metadata(self) -> dict:
        """데이터셋 메타데이터"""
        meta = {
            'data_dir': str(self.data_dir),
            'num_scans': self.num_scans,
            'has_imu': self.has_imu,
            'scan_time_range': [float(self.scan_df['timestamp'].iloc[0]),
                                float(self.scan_df['timestamp'].iloc[-1])],
        }
        if self.has_imu:
            meta['num_imu_samples'] = len(self.imu_df)
        return meta

    def __len__(self) -> int:
        return self.num_scans

    def __iter__(self) -> Iterator[ScanFrame]:
        for idx in range(self.num_scans):
            yield self.load_scan(idx)
