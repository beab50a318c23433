"""Similarity check pipeline: processing, retry scheduling and event listening."""
