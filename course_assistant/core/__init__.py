"""
Core ingestion pipeline.

Scheduling, progress estimation, scan snapshot persistence, message relay,
store brokering, upload retries, usage quota, health monitoring and the
scan session controller. Import from the submodules directly.
"""
