"""
Utility functions and helpers.

Modules:
- files: Directory and text file helpers
- redact: Scrubbing secrets from error text
- progress: rich progress/status helpers
"""
