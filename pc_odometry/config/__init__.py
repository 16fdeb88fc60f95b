"""
config 모듈 - 설정 관리
"""

from .system_config import (
    SystemConfig,
    FrameConfig,
    FiducialConfig,
    RegistrationConfig,
    FusionConfig,
    OutputConfig,
    load_config,
    create_default_config,
)

__all__ = [
    'SystemConfig',
    'FrameConfig',
    'FiducialConfig',
    'RegistrationConfig',
    'FusionConfig',
    'OutputConfig',
    'load_config',
    'create_default_config',
]
