from __future__ import annotations

"""Preflight checks for container startup.

- ensures data directory exists for SQLite
- prints config summary
"""

import os
from app.config import settings


def main():
    os.makedirs("data", exist_ok=True)
    # Mask credentials in DATABASE_URL
    db_url = settings.database_url
    if "@" in db_url:
        # Hide password: show scheme + host only
        parts = db_url.split("@")
        db_url = parts[0].split("://")[0] + "://***@" + parts[-1]
    print("Preflight OK")
    print(f"DATABASE_URL={db_url}")
    print(f"PROXY_ACCOUNT_ID={settings.proxy_account_id}")
    print(f"OWNER_ID={settings.owner_id or '(set via POST /init)'}")
    print(f"VOTING={settings.voting_contract_id} @ {settings.voting_base_url}")
    print(f"GAS={settings.gas_for_governance_tgas} Tgas + {settings.gas_for_callback_tgas} Tgas callback")
    print(f"ATTESTATION_MODE={settings.attestation_mode}")


if __name__ == "__main__":
    main()
