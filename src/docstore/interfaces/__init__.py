"""
Interfaces Layer
================

Adapters exposing the document store to host frameworks.
"""
