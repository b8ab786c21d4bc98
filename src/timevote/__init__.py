"""timevote: 参加者の投票で時間帯を切り替えるエンジン。"""

__version__ = "1.1.0"
