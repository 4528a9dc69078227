"""
Chunking and rate-limiting utilities.
"""
