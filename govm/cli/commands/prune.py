"""
Prune command implementation.

Removes installed versions that nothing references and the retention
options select.
"""

import logging

from govm.cli.utils import confirm, get_installer
from govm.toolchain.installer import all_of, keep_latest, older_than

logger = logging.getLogger(__name__)


def run(args) -> int:
    """
    Run the prune command.

    Args:
        args: Parsed command-line arguments with:
            - keep: Number of newest versions always kept
            - older_than: Only remove versions installed more than N days ago
            - search_roots: Directories to scan for .go-version files
            - dry_run: Report without removing
            - yes: Skip the confirmation prompt

    Returns:
        Exit code (0 for success, 1 if any removal failed)
    """
    if args.keep < 0:
        print("Error: --keep must not be negative")
        return 1

    predicate = keep_latest(args.keep)
    if args.older_than is not None:
        predicate = all_of(predicate, older_than(args.older_than))

    installer = get_installer(args)
    search_roots = args.search_roots or None

    preview = installer.prune(predicate, search_roots=search_roots, dry_run=True)
    if not preview.removed:
        print("Nothing to prune")
        return 0

    print("Versions to remove:")
    for version in preview.removed:
        print(f"  - {version}")

    if args.dry_run:
        print(f"\n[DRY RUN] Would remove {len(preview.removed)} version(s)")
        return 0

    if not args.yes and not confirm(f"Remove {len(preview.removed)} version(s)?"):
        print("Prune cancelled")
        return 0

    result = installer.prune(predicate, search_roots=search_roots)

    print(f"\nRemoved {len(result.removed)} version(s)")
    if result.failed:
        print(f"Failed to remove {len(result.failed)} version(s):")
        for error in result.errors:
            print(f"  - {error}")
        return 1

    return 0
