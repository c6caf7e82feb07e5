"""
Infrastructure Layer
=====================

Concrete technical implementations:
- Configuration sources (mapping, YAML, environment, layered)
- Settings binding
- Client certificate loading
- MongoDB document store
"""
