import sys
from pathlib import Path

# Ensure project root is on sys.path when running as a script
ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

from visitdesk.auth import CredentialStore, PasswordHasher
from visitdesk.config import load_config
from visitdesk.db import init_db


def main() -> None:
    cfg = load_config()
    init_db(cfg.DB_DSN)

    store = CredentialStore(cfg.DB_DSN, hasher=PasswordHasher(rounds=cfg.AUTH_PASSWORD_ROUNDS))
    boot = store.bootstrap_admin_if_needed(
        cfg.AUTH_BOOTSTRAP_ADMIN_USERNAME,
        cfg.AUTH_BOOTSTRAP_ADMIN_PASSWORD,
    )

    print(f"DB initialized: {cfg.DB_DSN}")
    if boot:
        print(f"Created admin user: {boot.username}")


if __name__ == "__main__":
    main()
