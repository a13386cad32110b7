"""Face analyzer adapter and backends.

Example:
    >>> from facelens.analyzer import FaceAnalyzer
    >>> from facelens.config import AnalyzerSettings
    >>> analyzer = FaceAnalyzer.from_settings(AnalyzerSettings())
"""

from facelens.analyzer.adapter import FaceAnalyzer
from facelens.analyzer.base import Analyzer, ExpressionBackend, FaceBackend

__all__ = ["Analyzer", "FaceAnalyzer", "FaceBackend", "ExpressionBackend"]
