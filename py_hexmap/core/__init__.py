"""
Core map generation functionality.
"""
