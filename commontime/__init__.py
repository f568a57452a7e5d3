"""
commontime - find the meeting time most participants can attend.
"""

__version__ = "0.1.0"
