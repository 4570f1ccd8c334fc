"""CLI script to generate VAPID keys for Web Push."""
from __future__ import annotations

import argparse

from moneyflow.core.vapid import generate_vapid_keys


def main() -> None:
    parser = argparse.ArgumentParser(
        description="Generate a VAPID key pair and print it as .env entries",
    )
    parser.add_argument(
        "--subject",
        default=None,
        help="Contact URI for the push services, e.g. mailto:ops@example.com",
    )
    args = parser.parse_args()

    keys = generate_vapid_keys()
    print("Add these to your .env file:\n")
    print(f"VAPID_PUBLIC_KEY={keys.public_key}")
    print(f"VAPID_PRIVATE_KEY={keys.private_key}")
    if args.subject:
        print(f"VAPID_SUBJECT={args.subject}")
    print("\nKeep the private key secret; only the public key is served to browsers.")


if __name__ == "__main__":
    main()
