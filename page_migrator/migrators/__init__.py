"""
WordPress API migrators and helpers.

This subpackage provides functions to interact with the WordPress REST API
for looking pages up, creating and updating pages, uploading media and
listing the media library.  It encapsulates HTTP Basic authentication and
automatic retries with exponential backoff.
"""
