"""
Node process supervisor.

Boots one of the cluster roles (master, metanode, datanode) inside a single
program, drives its lifecycle and shuts it down in order on SIGINT/SIGTERM.
"""
