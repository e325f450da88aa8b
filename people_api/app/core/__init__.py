"""
Core infrastructure: configuration, logging, MongoDB access, request
validation and error handling.
"""
