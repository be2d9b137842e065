"""
Database Setup Script
Validates configuration and creates the linked-account tables
"""

import sys

from tiktok_analytics.app.config import get_config, setup_logging, validate_config
from tiktok_analytics.app.database import check_connection, init_db
from tiktok_analytics.app.shared_cache import get_shared_cache


def main():
    """Initialize database and validate configuration"""
    print("=" * 60)
    print("🔧 TikTok Analytics - Database Setup")
    print("=" * 60)

    setup_logging()

    # Validate configuration first
    print("\n🔍 Validating Configuration...")
    validation = validate_config()

    if not validation["valid"]:
        print("\n❌ Configuration validation failed:")
        for error in validation["errors"]:
            print(f"  - {error}")
        sys.exit(1)

    if validation["warnings"]:
        print("\n⚠️  Configuration warnings:")
        for warning in validation["warnings"]:
            print(f"  - {warning}")

    config = get_config()
    print(f"\n📦 Using database: {config.database.url}")
    print(f"📁 Cache root: {get_shared_cache().cache_root}")

    print("\n🔌 Testing database connection...")
    if not check_connection():
        print("\n❌ Database connection failed")
        sys.exit(1)
    print("✅ Database connection successful")

    print("\n📊 Creating database tables...")
    init_db()

    print("\n" + "=" * 60)
    print("✅ Database setup complete!")
    print("=" * 60)


if __name__ == "__main__":
    main()
