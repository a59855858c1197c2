from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest

from src.app_config import AppConfig, EmailSettings


def make_app_config(**overrides) -> AppConfig:
    """Build an AppConfig with test defaults; keyword arguments replace single fields."""
    email = overrides.pop("email", None) or EmailSettings(
        oauth_url="https://gateway.test/token",
        oauth_scope="2432",
        proxy_url="https://gateway.test/sendEmailProxy/v1/",
        sender="reports@example.com",
        recipients=["a@example.com", "b@example.com"],
    )
    values = dict(
        project_root="/test/root",
        report_file_path="/tmp/missing_translations.csv",
        environment_mode="production",
        secret_project_id="424242",
        contentful_environment="master",
        contentful_api_url="https://api.contentful.test",
        contentful_app_url="https://app.contentful.test",
        source_locale="en-US",
        target_locale="fr-CA",
        excluded_content_types=[],
        page_size=1000,
        include_depth=10,
        gcp_project_id="test-project",
        gcp_location="global",
        include_suggestions=False,
        include_links=False,
        http_timeout=None,
        show_progress=False,
        email=email,
    )
    values.update(overrides)
    return AppConfig(**values)


def make_content_type(content_type_id, fields):
    """fields maps field id -> localized flag."""
    return {
        "sys": {"id": content_type_id},
        "fields": [{"id": field_id, "localized": localized} for field_id, localized in fields.items()],
    }


def make_entry(entry_id, fields):
    """fields maps field id -> {locale: value}."""
    return {"sys": {"id": entry_id}, "fields": fields}


def detection(language_code):
    return SimpleNamespace(languages=[SimpleNamespace(language_code=language_code)])


def translation(text):
    return SimpleNamespace(translations=[SimpleNamespace(translated_text=text)])


class FakeContentfulClient:
    """Serves canned content types and entries the way ContentfulClient does."""

    def __init__(self, content_types, entries_by_type):
        self._content_types = content_types
        self._entries_by_type = entries_by_type
        self.requested_types = []

    def content_types(self, space_id, environment_id, page_size=1000):
        return iter(self._content_types)

    def entries(self, space_id, environment_id, content_type_id, include=10, page_size=1000):
        self.requested_types.append(content_type_id)
        entries = self._entries_by_type.get(content_type_id, [])
        if isinstance(entries, Exception):
            raise entries
        return iter(entries)


@pytest.fixture
def app_config():
    return make_app_config()


@pytest.fixture
def translate_client():
    """A translation client that detects every text as French unless told otherwise."""
    client = MagicMock()
    client.detect_language.return_value = detection("fr")
    client.translate_text.return_value = translation("Bonjour")
    return client
