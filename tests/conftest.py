"""
pytest 공통 설정
"""

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parents[1]))
