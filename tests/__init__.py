"""
Test package for the YouTube Transcript Service

Covers URL parsing, transcript fetching, translation, persistence and the
HTTP API.
"""
