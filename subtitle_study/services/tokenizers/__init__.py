"""Tokenizer backends."""

from .factory import create_tokenizer
from .fugashi_tokenizer import FugashiTokenizer

__all__ = ["FugashiTokenizer", "create_tokenizer"]
