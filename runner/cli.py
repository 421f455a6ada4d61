from __future__ import annotations

import argparse
import os

from runner.probes import DEFAULT_ORIGIN, PROBES

LOCAL_BASE_URL = "http://localhost:5000"
REMOTE_BASE_URL = "https://express-backend-7m2c.onrender.com"


def default_base_url(probe: str) -> str:
    """The CORS probe targets the deployed backend; the rest hit the local one."""
    if probe == "cors":
        return os.getenv("REMOTE_BASE_URL", REMOTE_BASE_URL)
    return os.getenv("BASE_URL", LOCAL_BASE_URL)


def parse_args(argv: list[str]) -> argparse.Namespace:
    """Parse CLI arguments for the endpoint probes."""
    parser = argparse.ArgumentParser(description="Users API endpoint probes")
    parser.add_argument("probe", choices=sorted(PROBES))
    parser.add_argument("--base-url", default=None)
    parser.add_argument("--origin", default=os.getenv("CORS_ORIGIN", DEFAULT_ORIGIN))
    parser.add_argument("--email", default=None)
    parser.add_argument("--password", default=None)
    parser.add_argument("--timeout", type=float, default=None)
    parser.add_argument(
        "--strict", action="store_true", help="exit 1 when the probe did not succeed"
    )
    args = parser.parse_args(argv)
    if args.base_url is None:
        args.base_url = default_base_url(args.probe)
    return args
