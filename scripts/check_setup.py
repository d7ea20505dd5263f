#!/usr/bin/env python3
"""
Setup check: print the effective configuration, report configuration issues
and verify the document store database can be opened.
"""

import sys
from pathlib import Path

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from docvec.core import config


def main():
    print("Setup Check")
    print("===========\n")

    for key, value in config.public_config().items():
        print(f"   {key}: {value}")

    issues = config.validate_config()
    if issues:
        print("\nConfiguration issues:")
        for issue in issues:
            print(f"   - {issue}")
    else:
        print("\n✓ Configuration valid")

    try:
        with config.get_document_store() as store:
            healthy = store.health_check()
    except Exception as e:
        print(f"ERROR: Could not open document store at {config.get_db_path()}: {e}")
        return 1

    if not healthy:
        print("ERROR: Document store is missing required tables")
        return 1
    print(f"✓ Document store ready at {config.get_db_path()}")

    return 1 if issues else 0


if __name__ == "__main__":
    sys.exit(main())
