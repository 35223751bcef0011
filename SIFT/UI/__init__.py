"""
SIFT Terminal UI
"""

from .app import SiftApp, run_app

__all__ = [
    'SiftApp',
    'run_app'
]
