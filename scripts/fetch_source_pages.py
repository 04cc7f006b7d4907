#!/usr/bin/env python3
"""
Fetch the pages listed in urls.txt from the live site through the WordPress
REST API and save each one as pages/<id>.json for main.py to migrate.

Credentials come from WP_USER and WP_PASS (a .env file is loaded first).
"""

import argparse
import os
import sys
import time

from dotenv import load_dotenv

# Ensure project root is on sys.path when running the script directly
PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from page_migrator.extractors.staged_pages import (  # noqa: E402
    fetch_source_page,
    read_urls,
    save_staged_page,
    slug_from_url,
)
from page_migrator.utils.errors import MigrationError  # noqa: E402


def fetch_all(urls_file: str, out_dir: str, username: str, password: str, delay: float) -> int:
    urls = read_urls(urls_file)
    total = len(urls)
    saved = 0
    missing = 0
    failures = 0

    for idx, url in enumerate(urls, start=1):
        slug = slug_from_url(url)
        try:
            page = fetch_source_page(url, username=username, password=password)
        except (MigrationError, ValueError) as e:
            print(f"[{idx}/{total}] Error fetching {slug}: {e}")
            failures += 1
            continue

        if page is None:
            print(f"[{idx}/{total}] No page found for slug: {slug}")
            missing += 1
        else:
            out_path = save_staged_page(out_dir, page)
            print(f"[{idx}/{total}] Saved {slug} -> {out_path}")
            saved += 1

        if delay > 0:
            time.sleep(delay)

    print(f"Done. Saved: {saved} | Not found: {missing} | Failed: {failures}")
    return 0 if failures == 0 else 1


def main() -> int:
    load_dotenv()
    parser = argparse.ArgumentParser(description="Save source WordPress pages as JSON files in {out-dir}/{id}.json")
    parser.add_argument("--urls-file", default="urls.txt", help="File with one page URL per line (default: urls.txt)")
    parser.add_argument("--out-dir", default="pages", help="Output directory (default: pages)")
    parser.add_argument("--delay", type=float, default=0.0, help="Delay in seconds between pages (default: 0.0)")
    args = parser.parse_args()

    username = os.getenv("WP_USER")
    password = os.getenv("WP_PASS")
    if not username or not password:
        print("Missing WP credentials (WP_USER / WP_PASS) in .env", file=sys.stderr)
        return 1

    return fetch_all(args.urls_file, args.out_dir, username, password, args.delay)


if __name__ == "__main__":
    sys.exit(main())
