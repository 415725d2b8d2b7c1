"""
Utilities - logging setup and error types
"""
