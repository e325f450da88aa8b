"""
Service layer.

Each service encapsulates the storage logic for a domain so that API
handlers stay limited to validation and response shaping.
"""
