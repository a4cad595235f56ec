"""Create a user in the configured DB.

Usage:
  python scripts/create_user.py --username alice --password '...'

NOTE: This is intended for local/dev. In production use the /admin console.
"""

import argparse
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

from visitdesk.auth import CredentialStore, PasswordHasher
from visitdesk.config import load_config
from visitdesk.db import init_db


def main() -> None:
    ap = argparse.ArgumentParser()
    ap.add_argument("--username", required=True)
    ap.add_argument("--password", required=True)
    args = ap.parse_args()

    cfg = load_config()
    init_db(cfg.DB_DSN)

    store = CredentialStore(cfg.DB_DSN, hasher=PasswordHasher(rounds=cfg.AUTH_PASSWORD_ROUNDS))
    u = store.create_user(args.username, args.password)

    print("Created user:")
    print(u.to_public())


if __name__ == "__main__":
    main()
