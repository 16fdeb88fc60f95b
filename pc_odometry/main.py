"""
pc_odometry 메인 파이프라인
기록된 스캔 + IMU 방향 데이터를 재생하여 오도메트리 궤적 생성
"""

import argparse
import logging
from pathlib import Path
from typing import List, Optional, Dict, Any

import pandas as pd

from .config.system_config import SystemConfig, load_config
from .data.data_loader import DataLoader
from .tracking.point_cloud_odometry import PointCloudOdometry, OdometryResult, RegistrationFn
from .output.result_exporter import ResultExporter, OdometryStatistics

# 로거 설정
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


class OdometryPipeline:
    """
    오프라인 오도메트리 파이프라인

    각 스캔 처리 전에 해당 스캔 시각까지의 IMU 샘플을 먼저 입력하여
    실시간 수신 순서를 재현합니다.
    """

    def __init__(
        self,
        config: Optional[SystemConfig] = None,
        registration: Optional[RegistrationFn] = None
    ):
        """
        Args:
            config: 시스템 설정
            registration: 정합 함수 (None 이면 GICP)
        """
        self.config = config or SystemConfig()
        self.odometry = PointCloudOdometry.from_config(self.config, registration=registration)
        self.results: List[OdometryResult] = []

        logger.info("OdometryPipeline initialized")

    def process_dataset(
        self,
        data_dir: str,
        output_dir: Optional[str] = None,
        max_scans: Optional[int] = None,
        progress_interval: int = 100
    ) -> pd.DataFrame:
        """
        전체 데이터셋 처리

        Args:
            data_dir: 데이터 디렉토리 경로
            output_dir: 출력 디렉토리 (None 이면 저장 안함)
            max_scans: 최대 처리 스캔 수 (None이면 전체)
            progress_interval: 진행 로그 출력 간격

        Returns:
            결과 DataFrame
        """
        loader = DataLoader(data_dir)
        num_scans = len(loader) if max_scans is None else min(len(loader), max_scans)

        logger.info(f"Processing {num_scans} scans from {data_dir}")

        self.results = []
        last_imu_time = float('-inf')

        for idx in range(num_scans):
            try:
                frame = loader.load_scan(idx)

                for record in loader.imu_records(last_imu_time, frame.timestamp):
                    self.odometry.ingest(record.quaternion, record.timestamp)
                    last_imu_time = record.timestamp

                result = self.odometry.process_scan(frame.points, frame.timestamp)
                if result is not None:
                    self.results.append(result)

                if idx % progress_interval == 0:
                    logger.info(f"Processed {idx}/{num_scans} scans")

            except Exception as e:
                logger.warning(f"Error processing scan {idx}: {e}")
                continue

        logger.info(f"Processing complete: {len(self.results)} results")

        if output_dir is not None and self.config.output.save_results:
            self._save_results(output_dir, loader.get_metadata())

        return ResultExporter.to_dataframe(self.results)

    def _save_results(self, output_dir: str, dataset_metadata: Dict[str, Any]):
        """결과 저장"""
        exporter = ResultExporter(output_dir)

        exporter.export_trajectory(self.results)
        if self.config.output.output_format == 'json':
            exporter.export_json(
                self.results,
                metadata={'config': self.config.to_dict(), 'dataset': dataset_metadata}
            )
        else:
            exporter.export_csv(self.results)

        logger.info(f"Results saved to {output_dir}")

    def get_statistics(self) -> Dict[str, Any]:
        """통계 정보 반환"""
        stats = OdometryStatistics()
        stats.add_results(self.results)
        return stats.get_statistics()

    def print_summary(self):
        """요약 출력"""
        stats = OdometryStatistics()
        stats.add_results(self.results)
        print(stats.get_summary_string())


def main():
    """메인 실행"""
    parser = argparse.ArgumentParser(
        description='pc_odometry: 점군 정합 + IMU 자세 퓨전 오도메트리'
    )
    parser.add_argument('--data-dir', type=str, required=True,
                        help='데이터 디렉토리 경로')
    parser.add_argument('--output-dir', type=str, default=None,
                        help='출력 디렉토리 경로 (기본: 설정 파일의 output.output_dir)')
    parser.add_argument('--config', type=str, default=None,
                        help='설정 파일 경로 (YAML)')
    parser.add_argument('--max-scans', type=int, default=None,
                        help='최대 처리 스캔 수')
    parser.add_argument('--verbose', '-v', action='store_true',
                        help='상세 로그 출력')

    args = parser.parse_args()

    config = load_config(args.config) if args.config else SystemConfig()

    # 로그 레벨 설정
    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)
    else:
        logging.getLogger().setLevel(config.output.log_level.upper())

    output_dir = args.output_dir or config.output.output_dir

    pipeline = OdometryPipeline(config)
    pipeline.process_dataset(
        data_dir=args.data_dir,
        output_dir=output_dir,
        max_scans=args.max_scans
    )

    # 요약 출력
    pipeline.print_summary()

    print(f"\nResults saved to: {Path(output_dir).resolve()}")


if __name__ == "__main__":
    main()
