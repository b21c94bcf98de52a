#!/usr/bin/env python3
"""Check that bucketftp_core keeps the object-store SDK behind its store layer.

This script enforces architecture boundaries by checking for:
1. No boto3 imports in bucketftp_core/ outside bucketftp_core/store/
2. No botocore imports in bucketftp_core/ outside bucketftp_core/store/

Usage:
    python scripts/check_imports.py [files...]

Exit codes:
    0: No violations found
    1: Violations found
"""

import re
import sys
from pathlib import Path


PROHIBITED_PATTERNS = [
    (r"^\s*from\s+boto3\b", "boto3 import"),
    (r"^\s*import\s+boto3\b", "boto3 import"),
    (r"^\s*from\s+botocore\b", "botocore import"),
    (r"^\s*import\s+botocore\b", "botocore import"),
]


def is_checked(file_path: Path) -> bool:
    """Return True for Python files in bucketftp_core/ that are not part of the store layer."""
    parts = file_path.parts
    if file_path.suffix != ".py" or "bucketftp_core" not in parts:
        return False
    index = parts.index("bucketftp_core")
    return parts[index + 1 : index + 2] != ("store",)


def check_file(file_path: Path) -> list[tuple[int, str, str]]:
    """Check a single file for prohibited imports.

    Args:
        file_path: Path to Python file to check

    Returns:
        List of (line_number, line_content, violation_type) tuples
    """
    violations = []

    try:
        with open(file_path, "r", encoding="utf-8") as f:
            for line_num, line in enumerate(f, start=1):
                line_stripped = line.strip()

                # Skip comments and empty lines
                if not line_stripped or line_stripped.startswith("#"):
                    continue

                for pattern, violation_type in PROHIBITED_PATTERNS:
                    if re.search(pattern, line):
                        violations.append((line_num, line_stripped, violation_type))

    except OSError as e:
        print(f"Error reading {file_path}: {e}", file=sys.stderr)

    return violations


def main(file_paths: list[str]) -> int:
    """Check multiple files for prohibited imports.

    Args:
        file_paths: List of file paths to check

    Returns:
        Exit code (0 = success, 1 = violations found)
    """
    total_violations = 0

    for file_path_str in file_paths:
        file_path = Path(file_path_str)
        if not is_checked(file_path):
            continue

        violations = check_file(file_path)

        if violations:
            total_violations += len(violations)
            print(f"\n{file_path}:")
            for line_num, line_content, violation_type in violations:
                print(f"  Line {line_num}: {violation_type}")
                print(f"    {line_content}")

    if total_violations > 0:
        print(f"\nFound {total_violations} architecture violation(s)")
        print("\nbucketftp_core/ must stay store-agnostic outside bucketftp_core/store/.")
        print("   Talk to the store through ObjectStoreClient instead.")
        return 1

    print("No architecture violations found")
    return 0


if __name__ == "__main__":
    if len(sys.argv) < 2:
        print("Usage: python scripts/check_imports.py [files...]")
        sys.exit(1)

    sys.exit(main(sys.argv[1:]))
