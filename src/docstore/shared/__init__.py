"""
Shared Kernel Module
====================

Generic infrastructure used by every layer of the document store bootstrap.

DO NOT add configuration resolution or client construction logic here.
"""
