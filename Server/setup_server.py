#!/usr/bin/env python3
"""
WikiAPI Server - Setup Script

This script prepares a WikiAPI server for first use:
1. Creates the database schema (WIKIAPI_DATABASE_URL)
2. Creates the default groups, rights and settings
3. Creates the 'Admin' account in the sysop group
4. Initializes the file repository zones (WIKIAPI_STORAGE_ROOT)

Usage:
    python setup_server.py
"""

import sys
from pathlib import Path

# Ensure we can import from the same directory
sys.path.insert(0, str(Path(__file__).parent))

from managers.database_manager import DatabaseManager
from file_storage import InitializeStorage, STORAGE_ZONES


def print_section(title):
    """Print section header"""
    print()
    print("-" * 70)
    print(f"  {title}")
    print("-" * 70)


def initialize_database():
    """
    Initialize the database with schema and default data

    Returns:
        str or None: Admin password if created, None otherwise
    """
    print_section("Database Initialization")

    db_manager = DatabaseManager()
    print(f"-> Database: {db_manager.database_url}")

    admin_password = db_manager.InitializeDatabase()
    print("[OK] Database initialization complete")
    return admin_password


def initialize_storage():
    """Initialize the file repository directory structure"""
    print_section("File Repository Initialization")

    root = InitializeStorage()
    print("[OK] Storage zones ready:")
    for zone in STORAGE_ZONES:
        print(f"  - {root / zone}")


def print_admin_credentials(password):
    """Print admin credentials prominently"""
    print()
    print("!" * 70)
    print("!  IMPORTANT: SAVE THESE CREDENTIALS - PASSWORD SHOWN ONLY ONCE!  !")
    print("!" * 70)
    print()
    print("  Admin Username: Admin")
    print(f"  Admin Password: {password}")
    print()
    print("  -> Log in with POST /auth/login to obtain a bearer token")


def main():
    """Main setup script entry point"""
    print("=" * 70)
    print("WikiAPI Server - Setup")
    print("=" * 70)

    try:
        admin_password = initialize_database()
    except Exception as e:
        print(f"\n[ERROR] Setup failed during database initialization: {str(e)}")
        sys.exit(1)

    try:
        initialize_storage()
    except Exception as e:
        print(f"\n[ERROR] Setup failed during storage initialization: {str(e)}")
        sys.exit(1)

    if admin_password:
        print_admin_credentials(admin_password)
    else:
        print()
        print("  Database already contained users - no new admin account created.")

    print()
    print("Start the server with: python server.py")
    print("  or: uvicorn server:app --host 0.0.0.0 --port 8000")


if __name__ == "__main__":
    main()
