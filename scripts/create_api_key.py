#!/usr/bin/env python3
"""
Script to create a staff API key bound to a tenant.

Usage:
    python scripts/create_api_key.py --tenant-id 1 --name "Back office" --description "Description here"
    python scripts/create_api_key.py --tenant-id 1 --name "Back office"  # Description is optional
"""

import asyncio
import argparse
import sys
from pathlib import Path

# Add parent directory to path to import docshare modules
sys.path.insert(0, str(Path(__file__).parent.parent))

from sqlalchemy.exc import SQLAlchemyError
from docshare.database import AsyncSessionLocal, init_db
from docshare.models.api_key import ApiKey
from docshare.models.tenant import Tenant
from docshare.core.api_key import generate_api_key, hash_api_key


async def create_api_key(tenant_id: int, name: str, description: str = None) -> tuple[str, ApiKey]:
    """
    Create a new API key for a tenant.

    Returns:
        Tuple of (plain_api_key, ApiKey model)

    Raises:
        ValueError: If the tenant does not exist
    """
    plain_api_key = generate_api_key()

    async with AsyncSessionLocal() as session:
        if await session.get(Tenant, tenant_id) is None:
            raise ValueError(f"Tenant {tenant_id} does not exist")

        api_key = ApiKey(
            tenant_id=tenant_id,
            name=name,
            description=description,
            key_hash=hash_api_key(plain_api_key),
            is_active=True
        )
        session.add(api_key)
        await session.commit()
        await session.refresh(api_key)

        return plain_api_key, api_key


async def main():
    parser = argparse.ArgumentParser(description="Create a staff API key for a tenant")
    parser.add_argument("--tenant-id", type=int, required=True, help="Tenant the key acts for (required)")
    parser.add_argument("--name", required=True, help="Name for the API key (required)")
    parser.add_argument("--description", default=None, help="Description for the API key (optional)")
    args = parser.parse_args()

    await init_db()

    try:
        plain_key, api_key = await create_api_key(
            tenant_id=args.tenant_id,
            name=args.name,
            description=args.description
        )
    except (ValueError, SQLAlchemyError) as e:
        print(f"Error creating API key: {str(e)}", file=sys.stderr)
        sys.exit(1)

    print("\n" + "="*70)
    print("API KEY CREATED SUCCESSFULLY")
    print("="*70)
    print(f"ID: {api_key.id}")
    print(f"Tenant: {api_key.tenant_id}")
    print(f"Name: {api_key.name}")
    if api_key.description:
        print(f"Description: {api_key.description}")
    print("\n" + "-"*70)
    print("IMPORTANT: Save this API key now. It will NOT be shown again!")
    print("-"*70)
    print(f"\nAPI Key: {plain_key}\n")
    print("="*70)
    print("\nSend it in the X-API-Key header of /tq requests.")
    print("="*70 + "\n")


if __name__ == "__main__":
    asyncio.run(main())
