import logging
from typing import Any, Dict, Iterator, List, NamedTuple, Optional, Tuple

import requests
from tqdm import tqdm

from src.app_config import AppConfig
from src.errors import UpstreamServiceError

logger = logging.getLogger(__name__)


class LeafPair(NamedTuple):
    """One English value and its French counterpart at the same position of a localized field."""
    content_type_id: str
    entry_id: str
    field: str
    english_content: str
    french_content: Optional[str]


class ContentfulClient:
    """Minimal Content Management API client: bearer auth and skip/limit pagination."""

    def __init__(self, access_token: str, api_url: str = "https://api.contentful.com",
                 timeout: Optional[float] = None, session: Optional[requests.Session] = None):
        self.api_url = api_url.rstrip('/')
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update({
            "Authorization": f"Bearer {access_token}",
            "Content-Type": "application/vnd.contentful.management.v1+json",
        })

    def get(self, path: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        url = f"{self.api_url}/{path.lstrip('/')}"
        try:
            response = self.session.get(url, params=params, timeout=self.timeout)
        except requests.RequestException as e:
            raise UpstreamServiceError("contentful", f"GET {path} failed: {e}") from e
        if response.status_code != 200:
            try:
                error = response.json().get("message", response.text)
            except ValueError:
                error = response.text
            raise UpstreamServiceError("contentful", f"GET {path} returned {response.status_code}: {error}",
                                       status_code=response.status_code)
        try:
            return response.json()
        except ValueError as e:
            raise UpstreamServiceError("contentful", f"GET {path} returned invalid JSON") from e

    def paginate(self, path: str, params: Optional[Dict[str, Any]] = None,
                 page_size: int = 1000) -> Iterator[Dict[str, Any]]:
        """
        Yield every item of a collection endpoint.

        Requests `page_size` items at a time and advances `skip` by the page
        size until it reaches the total reported by the server.
        """
        skip = 0
        while True:
            page_params = dict(params or {})
            page_params.update({"limit": page_size, "skip": skip})
            page = self.get(path, page_params)
            items = page.get("items", [])
            yield from items
            total = page.get("total", 0)
            skip += page_size
            logger.debug(f"Fetched {len(items)} items from {path} (skip={skip - page_size}, total={total})")
            if skip >= total or not items:
                break

    def content_types(self, space_id: str, environment_id: str, page_size: int = 1000) -> Iterator[Dict[str, Any]]:
        path = f"spaces/{space_id}/environments/{environment_id}/content_types"
        return self.paginate(path, page_size=page_size)

    def entries(self, space_id: str, environment_id: str, content_type_id: str,
                include: int = 10, page_size: int = 1000) -> Iterator[Dict[str, Any]]:
        path = f"spaces/{space_id}/environments/{environment_id}/entries"
        params = {"content_type": content_type_id, "include": include}
        return self.paginate(path, params, page_size=page_size)


def flatten_localized_values(english: Any, french: Any) -> Iterator[Tuple[str, Optional[str]]]:
    """
    Pair every English text leaf with the French value at the same position.

    A localized value is either a string or a list whose elements are strings
    or further lists. Both trees are walked in lockstep with an explicit stack
    of (english list, french list, index) frames, so deeply nested content
    does not grow the Python call stack. A French list that is shorter, missing
    or shaped differently yields None at the affected positions. Non-text
    elements such as link objects are skipped.

    Args:
        english: The value stored under the source locale.
        french: The value stored under the target locale, if any.

    Yields:
        (english_text, french_text_or_None) tuples in traversal order.
    """
    if isinstance(english, str):
        yield english, french if isinstance(french, str) and french else None
        return
    if not isinstance(english, list):
        return

    stack: List[Tuple[list, Optional[list], int]] = [
        (english, french if isinstance(french, list) else None, 0)
    ]
    while stack:
        en_items, fr_items, index = stack.pop()
        if index >= len(en_items):
            continue
        # Resume this list at the next index once any child list is exhausted
        stack.append((en_items, fr_items, index + 1))

        en_item = en_items[index]
        fr_item = fr_items[index] if fr_items is not None and index < len(fr_items) else None

        if isinstance(en_item, list):
            stack.append((en_item, fr_item if isinstance(fr_item, list) else None, 0))
        elif isinstance(en_item, str):
            yield en_item, fr_item if isinstance(fr_item, str) and fr_item else None
        else:
            logger.debug(f"Skipping non-text value in localized list: {en_item!r}")


def extract_leaf_pairs(entry: Dict[str, Any], content_type: Dict[str, Any],
                       source_locale: str, target_locale: str) -> Iterator[LeafPair]:
    """Yield leaf pairs for every localized field of a single entry."""
    content_type_id = content_type["sys"]["id"]
    entry_id = entry["sys"]["id"]
    localized_fields = {f["id"] for f in content_type.get("fields", []) if f.get("localized")}

    for field_name, values in (entry.get("fields") or {}).items():
        if field_name not in localized_fields:
            continue
        if not isinstance(values, dict):
            continue
        for english, french in flatten_localized_values(values.get(source_locale), values.get(target_locale)):
            yield LeafPair(content_type_id, entry_id, field_name, english, french)


def scan_space(client: ContentfulClient, space_id: str, environment_id: str,
               config: AppConfig) -> Iterator[LeafPair]:
    """
    Yield every localized leaf pair in a space environment.

    Content types listed in `config.excluded_content_types` are skipped. A
    failure while reading one content type's entries is logged and the scan
    moves on to the next content type; a failure listing content types
    propagates.
    """
    excluded = set(config.excluded_content_types)
    content_types = list(client.content_types(space_id, environment_id, page_size=config.page_size))
    logger.info(f"Found {len(content_types)} content types in space '{space_id}' ({environment_id}).")

    for content_type in tqdm(content_types, desc="Scanning content types", unit="type",
                             disable=not config.show_progress):
        content_type_id = (content_type.get("sys") or {}).get("id")
        if not content_type_id:
            logger.error(f"Skipping content type without an id: {content_type!r}")
            continue
        if content_type_id in excluded:
            logger.info(f"Skipping excluded content type '{content_type_id}'.")
            continue

        leaf_pairs: List[LeafPair] = []
        try:
            for entry in client.entries(space_id, environment_id, content_type_id,
                                        include=config.include_depth, page_size=config.page_size):
                leaf_pairs.extend(
                    extract_leaf_pairs(entry, content_type, config.source_locale, config.target_locale))
        except (UpstreamServiceError, KeyError, TypeError, AttributeError) as e:
            logger.error(f"Error reading entries for content type '{content_type_id}': {e}", exc_info=True)
            continue

        logger.debug(f"Content type '{content_type_id}' yielded {len(leaf_pairs)} localized values.")
        yield from leaf_pairs
