"""
결과 저장 모듈
오도메트리 결과를 CSV / JSON 으로 내보내기
"""

import json
from pathlib import Path
from typing import List, Dict, Any, Optional
import logging

import numpy as np
import pandas as pd

from ..tracking.point_cloud_odometry import OdometryResult

logger = logging.getLogger(__name__)


class OdometryStatistics:
    """오도메트리 결과 통계"""

    def __init__(self):
        self.results: List[OdometryResult] = []

    def add_results(self, results: List[OdometryResult]):
        self.results.extend(results)

    def get_statistics(self) -> Dict[str, Any]:
        """통계 딕셔너리"""
        n = len(self.results)
        if n == 0:
            return {'num_results': 0}

        accepted = sum(1 for r in self.results if r.accepted)
        imu_active = sum(1 for r in self.results if r.diagnostics.imu_active)
        fused = sum(1 for r in self.results if r.diagnostics.fused)

        positions = np.array([r.integrated.translation for r in self.results])
        path_length = float(np.sum(np.linalg.norm(np.diff(positions, axis=0), axis=1))) if n > 1 else 0.0

        finite_dt = [abs(r.diagnostics.time_delta) for r in self.results
                     if np.isfinite(r.diagnostics.time_delta)]

        return {
            'num_results': n,
            'num_accepted': accepted,
            'num_rejected': n - accepted,
            'imu_active_ratio': imu_active / n,
            'num_fused': fused,
            'path_length': path_length,
            'final_position': positions[-1].tolist(),
            'mean_abs_time_delta': float(np.mean(finite_dt)) if finite_dt else None,
        }

    def get_summary_string(self) -> str:
        """요약 문자열"""
        stats = self.get_statistics()
        if stats['num_results'] == 0:
            return "No odometry results"

        lines = [
            "=== Odometry Summary ===",
            f"Cycles: {stats['num_results']} "
            f"(accepted {stats['num_accepted']}, rejected {stats['num_rejected']})",
            f"IMU active: {stats['imu_active_ratio'] * 100:.1f}% (fused {stats['num_fused']})",
            f"Path length: {stats['path_length']:.3f} m",
            "Final position: ({:.3f}, {:.3f}, {:.3f})".format(*stats['final_position']),
        ]
        return "\n".join(lines)


class ResultExporter:
    """
    결과 저장기

    - results.csv: 사이클별 증분/누적 자세 + 진단
    - odometry.csv: 누적 궤적 (timestamp, tx,ty,tz, qx,qy,qz,qw)
    - results.json: 메타데이터 + 통계 + 사이클별 결과
    """

    def __init__(self, output_dir: str):
        self.output_dir = Path(output_dir)
        self.output_dir.mkdir(parents=True, exist_ok=True)

    @staticmethod
    def to_dataframe(results: List[OdometryResult]) -> pd.DataFrame:
        """결과를 DataFrame으로 변환"""
        if len(results) == 0:
            return pd.DataFrame()
        return pd.DataFrame([r.to_dict() for r in results])

    def export_csv(self, results: List[OdometryResult], filename: str = 'results.csv') -> Path:
        path = self.output_dir / filename
        self.to_dataframe(results).to_csv(path, index=False)
        logger.info(f"Saved {len(results)} results to {path}")
        return path

    def export_trajectory(self, results: List[OdometryResult], filename: str = 'odometry.csv') -> Path:
        """누적 자세 궤적 저장"""
        rows = []
        for r in results:
            q = r.integrated.quaternion()
            t = r.integrated.translation
            rows.append({
                'timestamp': r.timestamp,
                'tx': t[0], 'ty': t[1], 'tz': t[2],
                'qx': q.x, 'qy': q.y, 'qz': q.z, 'qw': q.w,
            })

        path = self.output_dir / filename
        pd.DataFrame(rows, columns=['timestamp', 'tx', 'ty', 'tz', 'qx', 'qy', 'qz', 'qw']).to_csv(
            path, index=False, float_format='%.9f'
        )
        logger.info(f"Saved trajectory to {path}")
        return path

    def export_json(
        self,
        results: List[OdometryResult],
        metadata: Optional[Dict[str, Any]] = None,
        filename: str = 'results.json'
    ) -> Path:
        stats = OdometryStatistics()
        stats.add_results(results)

        payload = {
            'metadata': metadata or {},
            'statistics': stats.get_statistics(),
            'results': [
                {
                    'timestamp': r.timestamp,
                    'accepted': r.accepted,
                    'incremental': r.incremental.to_dict(),
                    'integrated': r.integrated.to_dict(),
                    'diagnostics': r.diagnostics.to_dict(),
                }
                for r in results
            ],
        }

        path = self.output_dir / filename
        with open(path, 'w') as f:
            # inf 시간차는 null 로 저장
            json.dump(_sanitize(payload), f, indent=2)

        logger.info(f"Saved JSON results to {path}")
        return path


def _sanitize(obj):
    if isinstance(obj, dict):
        return {k: _sanitize(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [_sanitize(v) for v in obj]
    if isinstance(obj, (float, np.floating)):
        return float(obj) if np.isfinite(obj) else None
    if isinstance(obj, np.integer):
        return int(obj)
    if isinstance(obj, np.bool_):
        return bool(obj)
    return obj
