"""
Boundary layer: adapters to the document database and the remote product feed.
"""
