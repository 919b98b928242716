import argparse
import json
import sys
from pathlib import Path

project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from cli.admin_client import AdminClient
from shared.errors import RemoteError


def main() -> None:
    parser = argparse.ArgumentParser(description="Create a demo user and volume on a running master")
    parser.add_argument("--master", default="127.0.0.1:17010", help="Master address")
    parser.add_argument("--user", default="demo", help="Owner user id")
    parser.add_argument("--volume", default="demo-vol", help="Volume name")
    parser.add_argument("--capacity", type=int, default=10, help="Capacity in GB")
    args = parser.parse_args()

    client = AdminClient(args.master)
    try:
        client.create_user(args.user)
        print(f"user {args.user} created")
    except RemoteError as e:
        print(f"user {args.user}: {e}")

    view = client.create_volume(args.volume, args.user, 3, 120, args.capacity, 3, True, False, "default")
    print(f"POST /admin/createVol -> {view.name}")
    print(json.dumps(view.model_dump(), indent=2))

    info = client.get_user(args.user)
    print(f"GET /user/info -> {info.user_id}")
    print(json.dumps(info.model_dump(), indent=2))


if __name__ == "__main__":
    main()
