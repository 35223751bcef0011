"""
Logging setup for SIFT
"""
