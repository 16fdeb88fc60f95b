"""
pc_odometry 패키지 설치 스크립트
"""

from setuptools import setup, find_packages

setup(
    name='pc_odometry',
    version='1.0.0',
    description='점군 정합 + IMU 자세 퓨전 기반 오도메트리',
    author='Fursys Image Processing Team',
    packages=find_packages(include=['pc_odometry', 'pc_odometry.*']),
    python_requires='>=3.8',
    install_requires=[
        'numpy>=1.21.0',
        'pandas>=1.3.0',
        'open3d>=0.15.0',
        'pyyaml>=5.4.0',
        'scipy>=1.7.0',
    ],
    extras_require={
        'dev': [
            'pytest>=7.0.0',
            'pytest-cov>=3.0.0',
        ],
    },
    entry_points={
        'console_scripts': [
            'pc_odometry=pc_odometry.main:main',
        ],
    },
    classifiers=[
        'Development Status :: 4 - Beta',
        'Intended Audience :: Developers',
        'Programming Language :: Python :: 3.8',
        'Programming Language :: Python :: 3.9',
        'Programming Language :: Python :: 3.10',
        'Programming Language :: Python :: 3.11',
    ],
)
