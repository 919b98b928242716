"""
CFS admin command line client: master API client, volume reconciler and
the argparse command tree.
"""
