"""
School Console service application.
"""
