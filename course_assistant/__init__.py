"""
Course assistant backend.

Detects a course context, crawls it for documents, uploads them into a
per-course retrieval store and answers questions against that store.
"""

__version__ = "0.1.0"
