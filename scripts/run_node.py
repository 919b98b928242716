"""
CFS Node Launcher

Writes a config file for one role from command line flags and starts the
node server with it. Handy for a single-host demo cluster.

Usage:
    python scripts/run_node.py master --listen 17010
    python scripts/run_node.py metanode --listen 17210 --master 127.0.0.1:17010
    python scripts/run_node.py datanode --listen 17310 --disks /tmp/cfs/disk0

Environment Variables:
    CFS_MASTER_ADDR: Master address for metanode/datanode (default: 127.0.0.1:17010)
    CFS_DATA_DIR: Root directory for generated configs and node data (default: ./cfs_data)
"""
import argparse
import json
import os
import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from node.main import main as node_main


def build_config(args) -> dict:
    data_dir = Path(args.data_dir) / f"{args.role}_{args.listen}"
    cfg = {
        "role": args.role,
        "listen": args.listen,
        "logDir": str(data_dir / "logs"),
        "logLevel": args.log_level,
    }
    if args.prof:
        cfg["prof"] = args.prof
    if args.role == "master":
        cfg["storeDir"] = str(data_dir / "store")
        cfg["clusterName"] = args.cluster_name
    else:
        cfg["masterAddr"] = args.master
        cfg["localIP"] = args.local_ip
    if args.role == "metanode":
        cfg["metadataDir"] = str(data_dir / "meta")
    if args.role == "datanode":
        cfg["disks"] = args.disks or [str(data_dir / "disk0")]
        for disk in cfg["disks"]:
            Path(disk).mkdir(parents=True, exist_ok=True)
    return cfg


def main() -> None:
    parser = argparse.ArgumentParser(description="Run one CFS node role")
    parser.add_argument("role", choices=["master", "metanode", "datanode"])
    parser.add_argument("--listen", type=int, default=17010)
    parser.add_argument("--master", default=os.getenv("CFS_MASTER_ADDR", "127.0.0.1:17010"))
    parser.add_argument("--local-ip", default="127.0.0.1")
    parser.add_argument("--cluster-name", default="cfs_demo")
    parser.add_argument("--disks", nargs="*", default=None)
    parser.add_argument("--prof", default="")
    parser.add_argument("--log-level", default="info")
    parser.add_argument("--data-dir", default=os.getenv("CFS_DATA_DIR", "./cfs_data"))
    args = parser.parse_args()

    cfg = build_config(args)
    config_path = Path(args.data_dir) / f"{args.role}_{args.listen}.json"
    config_path.parent.mkdir(parents=True, exist_ok=True)
    config_path.write_text(json.dumps(cfg, indent=2))

    print("=" * 60)
    print(f"CFS {args.role} node")
    print("=" * 60)
    print(f"Listen: {args.listen}")
    print(f"Config: {config_path}")
    print("=" * 60)

    sys.exit(node_main(["-c", str(config_path)]))


if __name__ == "__main__":
    main()
