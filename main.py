"""
Entry point for the WordPress page migration tool.
"""

import argparse
import sys

from dotenv import load_dotenv

from page_migrator.config import load_config
from page_migrator.migration_tool import PageMigrationTool
from page_migrator.utils.errors import ConfigurationError, MigrationError
from page_migrator.utils.pre_flight_checks import check_configuration, run_wordpress_pre_flight_checks

CONFIG_FILE = "config/migration_config.json"


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Migrate staged WordPress pages to the staging site.")
    parser.add_argument("--config", default=CONFIG_FILE, help="Path to the JSON configuration file.")
    mode = parser.add_mutually_exclusive_group()
    mode.add_argument("--test-mode", dest="test_mode", action="store_true", default=None,
                      help="Migrate only the first staged page.")
    mode.add_argument("--all", dest="test_mode", action="store_false",
                      help="Migrate every staged page.")
    parser.add_argument("--upload-new-images", action="store_true", default=None,
                        help="Upload fresh images even for pages that already have media.")
    parser.add_argument("--keep-interlinks", dest="clear_interlinks", action="store_false", default=None,
                        help="Send the interlinks ACF field instead of clearing it.")
    parser.add_argument("--skip-checks", action="store_true",
                        help="Only validate the configuration; do not contact the staging site first.")
    return parser.parse_args(argv)


def main(argv=None):
    """
    Main function to run the WordPress page migration tool.
    """
    load_dotenv()
    args = parse_args(argv)

    config = load_config(
        config_file=args.config,
        test_mode=args.test_mode,
        upload_new_images=args.upload_new_images,
        clear_interlinks=args.clear_interlinks,
    )
    try:
        if args.skip_checks:
            check_configuration(config)
        else:
            run_wordpress_pre_flight_checks(config)
    except ConfigurationError as e:
        print(f"[ERROR] Fatal error: {e}", file=sys.stderr)
        return 1

    tool = PageMigrationTool(config)
    tool.log_message("WordPress page migration started.")
    tool.log_message(f"STAGING_URL: {config.wordpress.base_url}", level="DEBUG")
    tool.log_message(f"TEST_MODE: {config.test_mode}", level="DEBUG")
    tool.log_message(f"UPLOAD_NEW_IMAGES: {config.upload_new_images}", level="DEBUG")
    tool.log_message(f"CLEAR_INTERLINKING: {config.clear_interlinks}", level="DEBUG")

    try:
        tool.prepare()
    except MigrationError as e:
        tool.log_message(f"Fatal error: {e}", level="ERROR")
        return 1

    page_files = tool.discover_pages()
    if not page_files:
        tool.log_message(f"No staged pages (.json) found in '{config.pages_dir}'.", level="ERROR")
        return 1

    report = tool.migrate_pages(page_files)
    tool.summarize(report)
    return 0 if report.failures == 0 else 2


if __name__ == "__main__":
    sys.exit(main())
