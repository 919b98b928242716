"""
DataNode: hosts the extent data of data partitions on local disks.
"""
