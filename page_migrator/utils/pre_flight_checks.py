import requests

from page_migrator.config import MigrationConfig
from page_migrator.utils.errors import ConfigurationError


def check_configuration(config: MigrationConfig) -> None:
    """
    Verifies that credentials and endpoint are present.

    Args:
        config: The validated migration configuration.

    Raises:
        ConfigurationError: If the endpoint or a credential is missing.
    """
    wp = config.wordpress
    missing = [
        name
        for name, value in (
            ("STAGING_URL", wp.base_url),
            ("STAGING_USER", wp.username),
            ("STAGING_PASS", wp.password),
        )
        if not value
    ]
    if missing:
        raise ConfigurationError(
            f"Missing configuration: {', '.join(missing)}. Check the .env file or config/migration_config.json."
        )


def run_wordpress_pre_flight_checks(config: MigrationConfig) -> None:
    """
    Verifies that the staging WordPress site is reachable with the configured
    credentials before any page is touched.

    Raises:
        ConfigurationError: If any check fails.
    """
    print("[INFO] Running pre-flight checks...")
    check_configuration(config)

    wp = config.wordpress
    users_url = f"{wp.api_root}/users/me"
    try:
        response = requests.get(users_url, auth=wp.auth, timeout=wp.timeout)
        response.raise_for_status()
    except requests.HTTPError as e:
        if e.response is not None and e.response.status_code in (401, 403):
            raise ConfigurationError("The WordPress credentials were rejected by the staging site.")
        raise ConfigurationError(f"Unexpected error checking the WordPress REST API: {e}")
    except requests.RequestException as e:
        raise ConfigurationError(f"Network error connecting to the WordPress REST API: {e}")

    print("[INFO] Pre-flight checks passed successfully.")
