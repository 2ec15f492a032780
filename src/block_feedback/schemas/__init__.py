"""
Schemas for the block feedback service API.
"""

from .notes import Document, LatestReview, Note, NoteCreate, NoteMeta
from .request import Block, FeedbackThread, ReviewOptions, ReviewRequest, ThreadReply
from .response import Error, FeedbackItem, FeedbackStats, ParsedFeedback, ReviewResult

__all__ = [
    "Block",
    "Document",
    "Error",
    "FeedbackItem",
    "FeedbackStats",
    "FeedbackThread",
    "LatestReview",
    "Note",
    "NoteCreate",
    "NoteMeta",
    "ParsedFeedback",
    "ReviewOptions",
    "ReviewRequest",
    "ReviewResult",
    "ThreadReply",
]
