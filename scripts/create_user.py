#!/usr/bin/env python3
"""
Script to create an account interactively, optionally with an elevated role.

Usage:
    # From host (via Docker):
    docker compose exec -it api python scripts/create_user.py

    # Bootstrap a site administrator and verify the email on the spot:
    docker compose exec -it api python scripts/create_user.py admin@cs.iitr.ac.in --role super_admin --verify
"""

import argparse
import getpass
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from clubhub.config import load_config
from clubhub.errors import ClubHubError
from clubhub.storage import DocumentStore
from clubhub.auth import AccountStore, OTPManager
from clubhub.auth.validation import BRANCHES, YEARS, ROLES, ROLE_STUDENT


def ask(prompt: str, value=None) -> str:
    return value or input(prompt).strip()


def main():
    parser = argparse.ArgumentParser(description="Create a new account")
    parser.add_argument("email", nargs="?", help="IITR email (e.g., user@cs.iitr.ac.in)")
    parser.add_argument("--name", "-n", help="Full name")
    parser.add_argument("--phone", "-p", help="10-digit phone number")
    parser.add_argument("--enrollment", help="8-digit enrollment number")
    parser.add_argument("--branch", choices=BRANCHES, default="Other")
    parser.add_argument("--year", choices=YEARS, default="1st Year")
    parser.add_argument("--role", choices=ROLES, default=ROLE_STUDENT)
    parser.add_argument("--verify", action="store_true", help="Verify the email through a locally issued OTP")
    args = parser.parse_args()

    config = load_config()
    accounts = AccountStore(DocumentStore(config.app.data_dir))

    email = ask("Email: ", args.email)
    if accounts.account_exists(email):
        print(f"❌ Account with email {email} already exists!")
        sys.exit(1)

    password = getpass.getpass("Enter password: ")
    confirm = getpass.getpass("Confirm password: ")
    if password != confirm:
        print("❌ Passwords do not match!")
        sys.exit(1)

    fields = {
        "email": email,
        "full_name": ask("Full name: ", args.name),
        "phone": ask("Phone (10 digits): ", args.phone),
        "enrollment_number": ask("Enrollment number (8 digits): ", args.enrollment),
        "branch": args.branch,
        "year": args.year,
        "password": password
    }

    try:
        account = accounts.create_account(fields)
        if args.role != ROLE_STUDENT:
            account = accounts.set_role(account.user_id, args.role)
        if args.verify:
            otp = OTPManager(accounts, ttl_seconds=config.otp.ttl_seconds, length=config.otp.length)
            account = otp.validate(account.user_id, otp.issue(account.user_id))
    except ClubHubError as e:
        print(f"❌ Failed to create account: {e.message}")
        for err in e.errors:
            print(f"   {err['field']}: {err['message']}")
        sys.exit(1)

    print()
    print("✅ Account created successfully!")
    print(f"   Email: {account.email}")
    print(f"   User ID: {account.user_id}")
    print(f"   Role: {account.role}")
    print(f"   Email verified: {'Yes' if account.is_email_verified else 'No'}")


if __name__ == "__main__":
    main()
