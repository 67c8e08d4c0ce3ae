"""
HTTP surface for UI instances.
"""
