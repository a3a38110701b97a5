"""
パッケージとして実行するためのエントリポイント

【使用方法】
python -m shotpipe capture area
python -m shotpipe history list
"""

import sys

from shotpipe.cli import main

sys.exit(main())
