"""
lessonsync - lesson progress tracking and synchronization.

Keeps per-lesson watch progress locally, reports playback position to the
progress API and merges server state back into the local snapshot.
"""

__version__ = "0.1.0"
