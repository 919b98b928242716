"""
MetaNode: hosts the inode/dentry meta partitions of volumes.

This build registers with the master, serves a status API and sends
heartbeats; partition storage itself lives outside this project.
"""
