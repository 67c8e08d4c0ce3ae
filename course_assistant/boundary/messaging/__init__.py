"""
Messaging substrate.
"""

from course_assistant.boundary.messaging.bus import InProcessMessageBus

__all__ = ["InProcessMessageBus"]
