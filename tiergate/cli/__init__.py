"""
Command-line interface for Tiergate.
"""
