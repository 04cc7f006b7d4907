"""
WordPress REST API helper functions for the page migration.

This module implements low-level interactions with the WordPress REST API
(``/wp-json/wp/v2``).  Functions defined here look pages up by slug, create
and update pages, upload media through the multipart ``/media`` endpoint and
page through the media library.  Every call authenticates with HTTP Basic
credentials from :class:`~page_migrator.config.WordPressSettings`.

A generic retry wrapper is provided to handle transient network errors:
any non-2xx response or ``requests`` exception counts as a failed attempt and
the next attempt waits ``initial_delay * 2 ** (attempt - 1)`` seconds.

Usage example::

    from page_migrator.config import load_config
    from page_migrator.migrators.wordpress_api import create_page, update_page

    cfg = load_config(config_file="config/migration_config.json").wordpress
    resp = create_page(cfg, {"title": "About", "slug": "about", "status": "draft"})
    update_page(cfg, resp["id"], {"acf": {"about_us_image": 123}})

"""

from __future__ import annotations

import os
import time
from typing import Any, Callable, Dict, List, Optional

import requests

from page_migrator.config import WordPressSettings
from page_migrator.utils.errors import RetryExhaustedError, TransientTransportError, log_message

###############################################################################
# Retry utilities
###############################################################################


def with_retries(
    fn: Callable[[], requests.Response],
    *,
    max_attempts: int = 3,
    initial_delay: float = 1.0,
    sleep_fn: Callable[[float], None] = time.sleep,
    accept: Callable[[requests.Response], bool] = lambda resp: resp.ok,
) -> requests.Response:
    """
    Execute a function returning a ``requests.Response``, retrying on any
    failure.  Backoff is purely exponential, without jitter.

    :param fn: A zero-argument callable that performs the HTTP request.
    :param max_attempts: Maximum number of attempts before giving up.
    :param initial_delay: Delay in seconds before the second attempt.
    :param sleep_fn: Used to wait between attempts.
    :param accept: Decides whether a response counts as a success.
    :return: The first successful ``requests.Response``.
    :raises RetryExhaustedError: if all attempts fail.
    """
    last_error: Optional[Exception] = None
    for attempt in range(1, max_attempts + 1):
        try:
            resp = fn()
            if accept(resp):
                return resp
            raise TransientTransportError(f"HTTP {resp.status_code}: {resp.text}", status_code=resp.status_code)
        except (TransientTransportError, requests.RequestException) as e:
            last_error = e
            log_message(f"  Attempt {attempt}/{max_attempts} failed: {e}", level="WARNING")
            if attempt < max_attempts:
                delay = initial_delay * (2 ** (attempt - 1))
                log_message(f"  Retrying in {delay:g}s...", level="DEBUG")
                sleep_fn(delay)
    raise RetryExhaustedError(max_attempts, last_error)


def _send(cfg: WordPressSettings, fn: Callable[[], requests.Response]) -> requests.Response:
    return with_retries(fn, max_attempts=cfg.retry.max_attempts, initial_delay=cfg.retry.initial_delay)


###############################################################################
# Page helpers
###############################################################################


def list_pages_by_slug(cfg: WordPressSettings, slug: str) -> List[Dict[str, Any]]:
    """
    Look pages up by slug.  Used against the source site.

    :return: The (possibly empty) list of matching page objects.
    """
    def do_request() -> requests.Response:
        return requests.get(
            f"{cfg.api_root}/pages",
            params={"slug": slug},
            auth=cfg.auth,
            timeout=cfg.timeout,
        )
    data = _send(cfg, do_request).json()
    return data if isinstance(data, list) else []


def create_page(cfg: WordPressSettings, payload: Dict[str, Any]) -> Dict[str, Any]:
    """
    Create a page on the destination site.

    :return: The created page object (``id`` and ``link`` are used).
    :raises RetryExhaustedError: on failure.
    """
    def do_request() -> requests.Response:
        return requests.post(f"{cfg.api_root}/pages", auth=cfg.auth, json=payload, timeout=cfg.timeout)
    return _send(cfg, do_request).json()


def update_page(cfg: WordPressSettings, page_id: Any, payload: Dict[str, Any]) -> Dict[str, Any]:
    """
    Update fields of an existing page.

    :raises RetryExhaustedError: on failure.
    """
    def do_request() -> requests.Response:
        return requests.patch(
            f"{cfg.api_root}/pages/{page_id}",
            auth=cfg.auth,
            json=payload,
            timeout=cfg.timeout,
        )
    return _send(cfg, do_request).json()


###############################################################################
# Media helpers
###############################################################################


def upload_media(cfg: WordPressSettings, image_path: str, title: str) -> Any:
    """
    Upload a local image to the Media Library.  The page title is used as
    both the media title and its alt text.

    :return: The id of the new media item.
    :raises RetryExhaustedError: on failure.
    """
    with open(image_path, "rb") as f:
        content = f.read()
    file_name = os.path.basename(image_path)

    def do_request() -> requests.Response:
        return requests.post(
            f"{cfg.api_root}/media",
            auth=cfg.auth,
            files={"file": (file_name, content)},
            data={"title": title, "alt_text": title},
            timeout=cfg.timeout,
        )
    return _send(cfg, do_request).json().get("id")


def _past_last_page(resp: requests.Response) -> bool:
    # WordPress answers out-of-range pages with 400 rest_post_invalid_page_number
    return resp.status_code == 400 and "rest_post_invalid_page_number" in resp.text


def list_media(cfg: WordPressSettings, page: int, per_page: int = 100) -> List[Dict[str, Any]]:
    """
    Fetch one page of the Media Library.  Requesting a page past the end
    returns an empty list.
    """
    def do_request() -> requests.Response:
        return requests.get(
            f"{cfg.api_root}/media",
            params={"per_page": per_page, "page": page},
            auth=cfg.auth,
            timeout=cfg.timeout,
        )
    resp = with_retries(
        do_request,
        max_attempts=cfg.retry.max_attempts,
        initial_delay=cfg.retry.initial_delay,
        accept=lambda r: r.ok or _past_last_page(r),
    )
    if not resp.ok:
        return []
    data = resp.json()
    return data if isinstance(data, list) else []
