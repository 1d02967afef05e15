"""
Console domain types: response envelope, sessions and request bodies.
"""
