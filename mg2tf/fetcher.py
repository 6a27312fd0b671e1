"""
Fetcher: retrieves the flat management group descendants listing.

One GET against Azure Resource Manager with a pre-fetched bearer token, or a
saved copy of the same response body read from disk. There is no retry and no
pagination; a failed request is fatal.
"""
import json
import logging
from typing import Any, Dict, List, Optional, Union

import requests

from .config import Credentials
from .constants import DESCENDANTS_URL_TEMPLATE
from .utils import FetchError

logger = logging.getLogger(__name__)


def build_descendants_url(tenant_id: str) -> str:
    """URL of the descendants listing under the tenant root group."""
    return DESCENDANTS_URL_TEMPLATE.format(tenant_id=tenant_id)


def parse_descendants(body: Union[str, bytes]) -> List[Dict[str, Any]]:
    """
    Extract the ``value`` entries from a descendants response body.

    Parsing is permissive: an undecodable body is logged and treated as an
    empty listing, and entries that are not JSON objects are skipped.
    """
    try:
        payload = json.loads(body)
    except (TypeError, ValueError) as e:
        logger.warning(f"Response body is not valid JSON; treating it as an empty listing: {e}")
        return []

    if not isinstance(payload, dict):
        logger.warning("Response body is not a JSON object; treating it as an empty listing")
        return []

    if payload.get('nextLink'):
        logger.debug("Response has a nextLink; only the first page is used")

    entries = payload.get('value')
    if not isinstance(entries, list):
        logger.warning("Response has no 'value' list; treating it as an empty listing")
        return []

    return [entry for entry in entries if isinstance(entry, dict)]


def fetch_descendants(credentials: Credentials,
                      session: Optional[requests.Session] = None) -> List[Dict[str, Any]]:
    """
    Fetch every management group and subscription below the tenant root.

    Raises:
        FetchError: on transport failure or a non-success HTTP status
    """
    url = build_descendants_url(credentials.tenant_id)
    headers = {"Authorization": f"Bearer {credentials.access_token}"}
    http = session or requests

    logger.debug(f"GET {url}")
    try:
        response = http.get(url, headers=headers)
    except requests.RequestException as e:
        raise FetchError(f"Request to {url} failed: {e}", original_error=e) from e

    if not response.ok:
        raise FetchError(
            f"Management groups API returned HTTP {response.status_code}: {_error_detail(response)}"
        )

    return parse_descendants(response.content)


def load_descendants_file(path: str) -> List[Dict[str, Any]]:
    """Read a saved descendants response body (e.g. from ``az rest``)."""
    try:
        with open(path, 'rb') as f:
            body = f.read()
    except OSError as e:
        raise FetchError(f"Could not read descendants file {path}: {e}", original_error=e) from e

    logger.info(f"Loaded descendants listing from {path}")
    return parse_descendants(body)


def _error_detail(response: requests.Response) -> str:
    """ARM error message if the body carries one, else the raw text."""
    try:
        error = response.json().get('error') or {}
        if isinstance(error, dict) and error.get('message'):
            return f"{error.get('code', 'Error')}: {error['message']}"
    except (ValueError, AttributeError):
        pass
    return response.text[:500]
