"""
models/ - Entity Definitions
============================
The fixed registry of entity kinds and the shapes of their JSON columns.
"""
