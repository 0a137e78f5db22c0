"""
@PURPOSE: 静态数据文件目录(Vinted 类目目录)
@OUTLINE:
  - DATA_DIR: 数据目录
  - DEFAULT_CATALOG_PATH: 默认类目目录文件
"""

from pathlib import Path

DATA_DIR = Path(__file__).parent
DEFAULT_CATALOG_PATH = DATA_DIR / "vinted_categories.json"
