"""
YouTube Comment Analyzer.

This application collects the comments of a YouTube video, filters and
translates them, and produces a structured audience summary using LLM models.
"""

from comment_analyzer.config import config

__version__ = config.APP_VERSION
