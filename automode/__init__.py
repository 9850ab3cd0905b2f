"""
Auto Mode - adaptive practice runs over a Python problem-solving curriculum.

Serves one question at a time, promotes the learner to the next topic after
a streak of correct answers, and keeps every run in a local save slot.
"""

__version__ = "1.0.0"
