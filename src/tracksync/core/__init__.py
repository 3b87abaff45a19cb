"""
Core layer - Domain model, translation tables, ports and errors.
"""
