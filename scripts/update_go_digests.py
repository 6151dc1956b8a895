"""
Regenerate runtimekit/data/go-digests.txt from the go.dev release feed.

Usage:
    python scripts/update_go_digests.py 1.22.1 1.23.4

Only archive downloads (.tar.gz / .zip) are written; installers and source
tarballs are skipped.
"""

import argparse
import json
import sys
from pathlib import Path

from runtimekit.core.download import fetch_text
from runtimekit.golang.release_index import (
    RELEASE_FEED_URL,
    default_manifest_path,
    entries_from_feed,
)

HEADER = """\
# Go toolchain release digests: "<sha256>  <archive filename>" per line.
# Regenerate with: python scripts/update_go_digests.py 1.22.1 [more versions...]
"""


def main():
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[1])
    parser.add_argument("versions", nargs="+", help="Go versions, e.g. 1.22.1")
    parser.add_argument("--output", type=Path, default=default_manifest_path())
    parser.add_argument("--feed", default=RELEASE_FEED_URL, help="Release feed URL")
    args = parser.parse_args()

    wanted = {v if v.startswith("go") else f"go{v}" for v in args.versions}
    releases = json.loads(fetch_text(args.feed, timeout=60))
    entries = entries_from_feed(releases, wanted)

    missing = {v for v in wanted if not any(e.filename.startswith(v + ".") for e in entries)}
    if missing:
        print(f"Unknown versions: {', '.join(sorted(missing))}", file=sys.stderr)
        return 1

    lines = [f"{e.digest}  {e.filename}" for e in entries]
    args.output.write_text(HEADER + "\n".join(lines) + "\n", encoding="utf-8")
    print(f"Wrote {len(lines)} entries to {args.output}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
