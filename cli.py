from __future__ import annotations

import argparse
import json
import sys

import requests


def _print(obj) -> None:
    print(json.dumps(obj, indent=2, ensure_ascii=False))


def _show(r: requests.Response) -> int:
    try:
        _print(r.json())
    except ValueError:
        print(r.text)
    return 0 if r.ok else 1


def main(argv: list[str] | None = None) -> int:
    p = argparse.ArgumentParser(description="Item services CLI")
    p.add_argument("--api", default="http://localhost:8080", help="Service base URL")
    p.add_argument("--timeout", type=float, default=10, help="Request timeout in seconds")
    sub = p.add_subparsers(dest="cmd", required=True)

    s_put = sub.add_parser("put", help="Create or overwrite an item (front door)")
    s_put.add_argument("--id", required=True)
    s_put.add_argument("--name", default="")

    s_get = sub.add_parser("get", help="Read an item (front door)")
    s_get.add_argument("--id", required=True)

    s_fetch = sub.add_parser("fetch", help="Fetch an item through the discovery proxy")
    s_fetch.add_argument("--id", required=True)

    sub.add_parser("health", help="Call /healthcheck")

    args = p.parse_args(argv)

    base = args.api.rstrip("/")

    try:
        if args.cmd == "put":
            r = requests.post(f"{base}/item", json={"id": args.id, "name": args.name}, timeout=args.timeout)
            return _show(r)

        if args.cmd == "get":
            return _show(requests.get(f"{base}/item", params={"id": args.id}, timeout=args.timeout))

        if args.cmd == "fetch":
            return _show(requests.get(f"{base}/fetch-item", params={"id": args.id}, timeout=args.timeout))

        if args.cmd == "health":
            return _show(requests.get(f"{base}/healthcheck", timeout=args.timeout))
    except requests.exceptions.RequestException as e:
        print(f"Request to {base} failed: {e}", file=sys.stderr)
        return 1

    return 2


if __name__ == "__main__":
    raise SystemExit(main(sys.argv[1:]))
