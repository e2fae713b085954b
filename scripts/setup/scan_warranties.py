# scripts/setup/scan_warranties.py
"""
Raise warranty_expiring / warranty_expired alerts for every unsold vehicle.
Meant for a daily cron entry; safe to re-run (alerts have a cooldown).
Usage: python scripts/setup/scan_warranties.py
"""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", ".."))

import asyncio
from app.database import SessionLocal
from app.services.warranty_monitor import scan_warranties


def main():
    db = SessionLocal()
    try:
        result = asyncio.run(scan_warranties(db))
    finally:
        db.close()
    print(f"🛡️  Scanned {result['scanned']} vehicles — {result['alerts_raised']} new alerts")


if __name__ == "__main__":
    main()
