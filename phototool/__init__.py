"""
phototool - Group photos into dated folders and batch-convert images.

Files are renamed and relocated using a classification expression evaluated
against each file's capture timestamp and name, and external conversion
commands are driven over a bounded worker pool.
"""

__version__ = "1.0.0"


# Public API
from .cli import main
from .config import Config
from .conversion import ConversionPipeline, ConversionTask
from .core import PhotoGrouper
from .expression import compile_expression, evaluate
from .file_operations import Relocator
from .records import FileRecord
from .scanner import enumerate_files
from .timestamps import DateResolver

__all__ = [ "main", "Config", "ConversionPipeline", "ConversionTask", "PhotoGrouper",
            "compile_expression", "evaluate", "Relocator", "FileRecord", "enumerate_files",
            "DateResolver" ]
