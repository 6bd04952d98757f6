"""
repositories/ - Data Access Layer
==================================
The generic record repository: one create/read/update/delete contract
shared by every entity table, scoped by owner.
"""
