"""
Infrastructure Layer
=====================

Low-level technical concerns shared across layers:
- Logging setup
"""
