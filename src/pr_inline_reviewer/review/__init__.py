"""
Review Engine

This module provides diff position indexing, issue extraction, line
resolution and inline comment dispatch.
"""

from .indexer import DiffPositionIndexer, build_position_index
from .extractor import IssueExtractor, extract_issues
from .resolver import LineResolver
from .addressing import AddressingStrategy, PositionAddressing, LineAddressing, addressing_for
from .dispatcher import CommentDispatcher

__all__ = [
    'DiffPositionIndexer',
    'build_position_index',
    'IssueExtractor',
    'extract_issues',
    'LineResolver',
    'AddressingStrategy',
    'PositionAddressing',
    'LineAddressing',
    'addressing_for',
    'CommentDispatcher',
]
