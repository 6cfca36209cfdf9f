"""
Clients for the remote services exposed as tools.
"""
