"""Report content problems: dropped records and dangling references.

    python check_links.py --data-dir data
    python check_links.py --strict      # exit 1 when anything is reported

Reads the same sources the API uses (CONTENT_BACKEND / DATA_DIR) unless
--data-dir is given.
"""

import argparse
import json
import logging
import sys
from typing import List, Optional

from catalog import Catalog
from database import get_sources
from errors import SourceUnavailable


def main(argv: Optional[List[str]] = None) -> int:
    p = argparse.ArgumentParser(prog="goldstar-check-links", description="Check content JSON for problems.")
    p.add_argument("--data-dir", default=None, help="Directory holding casinos/countries/guides JSON")
    p.add_argument("--json", action="store_true", help="Print the report as JSON")
    p.add_argument("--strict", action="store_true", help="Exit with status 1 if anything is reported")
    p.add_argument("-v", "--verbose", action="store_true", help="Log every dropped record")
    args = p.parse_args(argv)

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.ERROR, format="%(levelname)s %(name)s: %(message)s")

    catalog = Catalog.from_sources(get_sources(args.data_dir))
    try:
        dropped = catalog.diagnostics()
        links = catalog.validate_links()
    except SourceUnavailable as ex:
        sys.stderr.write(f"error: {ex}\n")
        return 2

    problems = sum(len(items) for items in dropped.values()) + len(links)

    if args.json:
        report = {
            "dropped": {entity: [d.model_dump() for d in items] for entity, items in dropped.items()},
            "links": [r.model_dump() for r in links],
        }
        sys.stdout.write(json.dumps(report, indent=2) + "\n")
    else:
        for entity, items in dropped.items():
            for d in items:
                sys.stdout.write(f"[{d.kind}] {entity} {d.origin}: {'; '.join(d.reasons)}\n")
        for r in links:
            if r.missing_casinos:
                sys.stdout.write(f"[link] {r.entity} {r.key}: unknown casinos {', '.join(r.missing_casinos)}\n")
            if r.missing_countries:
                sys.stdout.write(f"[link] {r.entity} {r.key}: unknown countries {', '.join(r.missing_countries)}\n")
        sys.stdout.write(f"{problems} problem(s) found\n")

    if args.strict and problems:
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
