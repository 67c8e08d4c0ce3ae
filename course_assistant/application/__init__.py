"""
Application layer: use cases composed from the core pipeline and boundary adapters.
"""
