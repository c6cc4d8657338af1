"""
clipqueue: a video conversion queue.

Naming templates, output path resolution, preset handling, job
orchestration and encoder event synchronization.
"""

__version__ = "0.1.0"
