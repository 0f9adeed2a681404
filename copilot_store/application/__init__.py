"""
Application layer: chat, cache and catalog services and their composition root.
"""
