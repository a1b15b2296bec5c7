"""
Voice journal backend: recording capture, transcription, AI insights and read-back.
"""

__version__ = "0.3.0"
