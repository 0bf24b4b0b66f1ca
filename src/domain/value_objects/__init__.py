"""
ドメイン値オブジェクトの公開API。
"""

from .label_universe import LabelUniverse

__all__ = [
    "LabelUniverse",
]
