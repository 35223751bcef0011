"""
Source file change notifications
"""
