from .code_registry import CodeRegistry
from .strategies import BASE62_ALPHABET, BaseStrategy, RandomStrategy

__all__ = ["CodeRegistry", "BaseStrategy", "RandomStrategy", "BASE62_ALPHABET"]
