"""
Language detection and machine translation through Cloud Translation v3.

The translation client is created once by the caller and handed to every
function here, so tests can substitute a mock.
"""
import logging
from typing import Optional

from google.api_core.exceptions import GoogleAPICallError, RetryError
from google.auth.exceptions import GoogleAuthError
from google.cloud import translate_v3

logger = logging.getLogger(__name__)

# The translation API rejects longer inputs.
MAX_TRANSLATION_LENGTH = 1024
LENGTH_EXCEEDED_MESSAGE = f"Text exceeds the maximum allowed length of {MAX_TRANSLATION_LENGTH} characters"
TRANSLATION_UNAVAILABLE = ""

MIME_TYPE = "text/plain"


def create_translation_client() -> translate_v3.TranslationServiceClient:
    """Initializes and returns a Cloud Translation client."""
    try:
        return translate_v3.TranslationServiceClient()
    except Exception as e:
        logger.error(f"Failed to initialize translation client: {e}")
        raise


def is_content_translated(
        client: translate_v3.TranslationServiceClient,
        parent: str,
        content: Optional[str],
        locale: str
) -> bool:
    """
    Check whether content is already written in the language of a locale.

    The detected language code only needs to be contained in the locale
    string, so a detected "fr" matches "fr-CA".

    Args:
        client: The translation client.
        parent: The `projects/{project}/locations/{location}` resource context.
        content: The text to check. Empty or missing text is never translated.
        locale: The target locale, e.g. "fr-CA".

    Returns:
        True if the detected language matches the locale. Service failures
        return False so the value is reported rather than the job aborting.
    """
    if not content:
        return False

    try:
        response = client.detect_language(
            request={
                "parent": parent,
                "content": content,
                "mime_type": MIME_TYPE,
            }
        )
    except (GoogleAPICallError, RetryError, GoogleAuthError) as e:
        logger.warning(f"Language detection failed, flagging value as untranslated: {e}")
        return False

    if not response.languages:
        return False
    detected_language = response.languages[0].language_code
    return bool(detected_language) and detected_language in locale


def suggest_translation(
        client: translate_v3.TranslationServiceClient,
        parent: str,
        content: str,
        target_locale: str,
        source_locale: str = "en-US"
) -> str:
    """
    Machine-translate content into the target locale.

    Returns:
        The top translation, LENGTH_EXCEEDED_MESSAGE when the content is too
        long to send, or TRANSLATION_UNAVAILABLE when the call fails or
        returns nothing.
    """
    if len(content) > MAX_TRANSLATION_LENGTH:
        return LENGTH_EXCEEDED_MESSAGE

    try:
        response = client.translate_text(
            request={
                "parent": parent,
                "contents": [content],
                "mime_type": MIME_TYPE,
                "source_language_code": source_locale,
                "target_language_code": target_locale,
            }
        )
    except (GoogleAPICallError, RetryError, GoogleAuthError) as e:
        logger.warning(f"Translation suggestion failed: {e}")
        return TRANSLATION_UNAVAILABLE

    if not response.translations:
        return TRANSLATION_UNAVAILABLE
    return response.translations[0].translated_text or TRANSLATION_UNAVAILABLE
