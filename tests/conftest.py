"""Pytest configuration: import from src/ and keep tests off the on-disk database."""

import os
import sys
from pathlib import Path

_SRC = Path(__file__).resolve().parents[1] / "src"
if str(_SRC) not in sys.path:
    sys.path.insert(0, str(_SRC))

# 既定はインメモリ。SQLite を使うテストは tmp_path を指定して個別に上書きする
os.environ.setdefault("STORE_BACKEND", "memory")
