"""
Coaching feedback: the shared throttled channel and the voice sink.
"""
