"""
Core functionality for the YouTube comment analyzer.

This package contains the retry engine, the concurrency gate, the comment
filter, the paginated collector, and the batch translator and summarizer.
"""
