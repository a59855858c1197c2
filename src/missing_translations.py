import logging
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional

from google.cloud import translate_v3

from src.app_config import AppConfig
from src.content_scanner import LeafPair
from src.translation_service import (
    TRANSLATION_UNAVAILABLE,
    is_content_translated,
    suggest_translation,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReportRow:
    """One localized value whose French content is missing or not in French."""
    content_type_id: str
    entry_id: str
    field: str
    english_content: str
    french_content: Optional[str] = None
    suggested_french_content: Optional[str] = None
    link_to_content: Optional[str] = None

    def as_dict(self) -> Dict[str, Optional[str]]:
        """Row keyed by CSV column name."""
        return {
            "contentTypeId": self.content_type_id,
            "entryId": self.entry_id,
            "field": self.field,
            "englishContent": self.english_content,
            "frenchContent": self.french_content,
            "suggestedFrenchContent": self.suggested_french_content,
            "linkToContent": self.link_to_content,
        }


def build_entry_link(app_url: str, space_id: str, environment_id: str, entry_id: str) -> str:
    """Deep link to an entry in the content-management web app."""
    return f"{app_url.rstrip('/')}/spaces/{space_id}/environments/{environment_id}/entries/{entry_id}"


def find_missing_translations(
        leaf_pairs: Iterable[LeafPair],
        translate_client: translate_v3.TranslationServiceClient,
        config: AppConfig,
        space_id: str
) -> List[ReportRow]:
    """
    Filter scanned leaf pairs down to the values that still need a translation.

    Rows keep the order of `leaf_pairs`. Suggestions and links are only added
    when enabled in the configuration; a failed suggestion still yields the
    row, with an empty suggestion.

    Args:
        leaf_pairs: Output of `scan_space`.
        translate_client: The shared translation client.
        config: The application configuration.
        space_id: The scanned space, used for deep links.

    Returns:
        List[ReportRow]: One row per untranslated value.
    """
    parent = config.translation_parent
    rows: List[ReportRow] = []
    checked = 0

    for pair in leaf_pairs:
        checked += 1
        if is_content_translated(translate_client, parent, pair.french_content, config.target_locale):
            continue

        suggestion = None
        if config.include_suggestions:
            suggestion = suggest_translation(
                translate_client, parent, pair.english_content, config.target_locale, config.source_locale)
            if suggestion == TRANSLATION_UNAVAILABLE:
                logger.warning(f"No suggestion for {pair.content_type_id}/{pair.entry_id}/{pair.field}")

        link = None
        if config.include_links:
            link = build_entry_link(config.contentful_app_url, space_id, config.contentful_environment, pair.entry_id)

        rows.append(ReportRow(
            content_type_id=pair.content_type_id,
            entry_id=pair.entry_id,
            field=pair.field,
            english_content=pair.english_content,
            french_content=pair.french_content,
            suggested_french_content=suggestion,
            link_to_content=link,
        ))

    logger.info(f"Checked {checked} localized values, {len(rows)} missing a {config.target_locale} translation.")
    return rows
