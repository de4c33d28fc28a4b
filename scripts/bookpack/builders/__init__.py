from bookpack.builders.epub import EpubBuilder

__all__ = ["EpubBuilder"]
