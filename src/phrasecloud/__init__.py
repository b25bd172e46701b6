"""Multilingual text processing for live word clouds.

Turns a snapshot of short Chinese, English and Malay submissions into
ranked, deduplicated and tiered display groups.
"""

from .aggregation.grouping import SemanticGroup, SemanticVariant
from .nlp.tokenization import ProcessedToken
from .processor import (
    ProcessingResult,
    ProcessingStats,
    ProcessorOptions,
    WordCloudProcessor,
    build_pipeline,
    get_processing_stats,
    process_word_cloud_data,
)
from .submissions import RawSubmission, load_submissions

__version__ = "0.3.0"

__all__ = [
    "ProcessedToken",
    "ProcessingResult",
    "ProcessingStats",
    "ProcessorOptions",
    "RawSubmission",
    "SemanticGroup",
    "SemanticVariant",
    "WordCloudProcessor",
    "build_pipeline",
    "get_processing_stats",
    "load_submissions",
    "process_word_cloud_data",
]
