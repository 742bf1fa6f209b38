#!/usr/bin/env python3
"""
Register ambulances and hospitals in the database named by DATABASE_URL.

  python scripts/seed_registry.py ambulance AMB1 --password secret --attendant "R. Kumar" --mac AA:BB:CC:DD:EE:FF
  python scripts/seed_registry.py hospital HOSP1 "City Hospital" --password secret --doctor "Dr. Rao"
"""

import argparse
import sys

from smart_ambulance.core.errors import ConflictError
from smart_ambulance.repositories import repository
from smart_ambulance.services.identity import hash_password


def main() -> None:
    p = argparse.ArgumentParser()
    sub = p.add_subparsers(dest="kind", required=True)

    amb = sub.add_parser("ambulance")
    amb.add_argument("ambulance_id")
    amb.add_argument("--password", required=True)
    amb.add_argument("--attendant")
    amb.add_argument("--mac")

    hosp = sub.add_parser("hospital")
    hosp.add_argument("hospital_id")
    hosp.add_argument("name")
    hosp.add_argument("--password", required=True)
    hosp.add_argument("--doctor")

    args = p.parse_args()
    repository.init_db()
    try:
        if args.kind == "ambulance":
            repository.create_ambulance(
                args.ambulance_id,
                password_hash=hash_password(args.password),
                attendant_name=args.attendant,
                hardware_code=args.mac,
            )
        else:
            repository.create_hospital(
                args.hospital_id,
                args.name,
                password_hash=hash_password(args.password),
                doctor_name=args.doctor,
            )
    except ConflictError as exc:
        print(exc.message)
        sys.exit(1)
    print("Registered", args.kind)


if __name__ == "__main__":
    main()
