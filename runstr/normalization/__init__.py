"""Raw event to workout record normalization."""

from .normalizer import RecordNormalizer, NormalizationReport

__all__ = [
    "RecordNormalizer",
    "NormalizationReport",
]
