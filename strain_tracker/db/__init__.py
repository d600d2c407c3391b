"""
Persistence: engine setup, collection paths, and the document store.
"""
