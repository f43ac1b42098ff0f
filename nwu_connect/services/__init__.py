"""
Business logic. Functions receive their collaborators as keyword arguments.
"""
