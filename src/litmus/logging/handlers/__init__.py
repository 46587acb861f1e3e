from .base import BaseLogHandler as BaseLogHandler
from .file import FileLogHandler as FileLogHandler
from .jsonl import JsonLinesLogHandler as JsonLinesLogHandler

__all__ = [
    "BaseLogHandler",
    "FileLogHandler",
    "JsonLinesLogHandler",
]
