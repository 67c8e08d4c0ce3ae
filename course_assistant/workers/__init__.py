"""
Background workers.
"""

from course_assistant.workers.crawl_worker import CrawlWorker

__all__ = ["CrawlWorker"]
