"""
login_load.py - simple async load script for the Login plugin endpoint

Picks users from a credential file and posts frp Login plugin requests,
mixing in a share of wrong passwords, then reports allow/reject counts.

Usage:
  python login_load.py --base http://127.0.0.1:7003 --auth-file ./tokens --count 15000 --concurrency 200 --bad-ratio 0.1
"""
import argparse
import asyncio
import random
import time
from datetime import datetime, timezone

import httpx

from frp_multiuser.credentials.loader import load_credentials

def _now_iso():
    return datetime.now(timezone.utc).isoformat()

def _login_payload(user: str, password: str, idx: int) -> dict:
    return {
        "version": "0.1.0",
        "op": "Login",
        "content": {
            "version": "0.52.0",
            "os": "linux",
            "arch": "amd64",
            "user": user,
            "run_id": f"load-{idx}",
            "metas": {"password": password},
            "client_address": "127.0.0.1:50000",
        },
    }

async def _login_one(client: httpx.AsyncClient, url: str, user: str, password: str, idx: int):
    try:
        r = await client.post(url, json=_login_payload(user, password, idx), timeout=10)
        if r.status_code != 200:
            return "error"
        return "allow" if r.json().get("unchange") else "reject"
    except httpx.HTTPError:
        return "error"

async def main():
    parser = argparse.ArgumentParser()
    parser.add_argument("--base", default="http://127.0.0.1:7003")
    parser.add_argument("--path", default="/handler")
    parser.add_argument("--auth-file", default="./tokens")
    parser.add_argument("--count", type=int, default=15000)
    parser.add_argument("--concurrency", type=int, default=200)
    parser.add_argument("--bad-ratio", type=float, default=0.1)
    args = parser.parse_args()

    users = list(load_credentials(args.auth_file).items())
    if not users:
        print(f"No users found in {args.auth_file}.")
        return

    url = f"{args.base}{args.path}?version=0.1.0&op=Login"
    counts = {"allow": 0, "reject": 0, "error": 0}
    start_iso = _now_iso()
    t0 = time.perf_counter()

    limit = httpx.Limits(max_connections=args.concurrency, max_keepalive_connections=args.concurrency)
    async with httpx.AsyncClient(limits=limit) as client:
        sem = asyncio.Semaphore(args.concurrency)

        async def _task(i):
            user, password = random.choice(users)
            if random.random() < args.bad_ratio:
                password = password + "-wrong"
            async with sem:
                counts[await _login_one(client, url, user, password, i)] += 1

        await asyncio.gather(*(_task(i) for i in range(args.count)))

    dt = time.perf_counter() - t0
    end_iso = _now_iso()
    print(f"START: {start_iso}")
    print(f"END:   {end_iso}")
    print(f"TOTAL: {dt:.3f} s")
    print(f"OPS:   logins={args.count}, allow={counts['allow']}, reject={counts['reject']}, error={counts['error']}")
    if dt > 0:
        print(f"RPS:   {(counts['allow'] + counts['reject'])/dt:.1f} req/s")

if __name__ == "__main__":
    asyncio.run(main())
