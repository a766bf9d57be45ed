"""
HTTP layer for the pairing feature.
"""
