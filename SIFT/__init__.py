"""
SIFT - Interactive viewer for JSON-per-line log files
"""

__version__ = "1.0.0"
