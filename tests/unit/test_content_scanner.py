"""Unit tests for content scanning and localized value flattening."""
import unittest
from unittest.mock import MagicMock

import requests

from src.content_scanner import (
    ContentfulClient,
    LeafPair,
    extract_leaf_pairs,
    flatten_localized_values,
    scan_space,
)
from src.errors import UpstreamServiceError
from tests.conftest import FakeContentfulClient, make_app_config, make_content_type, make_entry


def _response(status_code=200, payload=None):
    response = MagicMock()
    response.status_code = status_code
    response.json.return_value = payload or {}
    response.text = str(payload)
    return response


class TestFlattenLocalizedValues(unittest.TestCase):

    def test_plain_strings(self):
        self.assertEqual(list(flatten_localized_values("Hello", "Bonjour")), [("Hello", "Bonjour")])
        self.assertEqual(list(flatten_localized_values("Hello", None)), [("Hello", None)])

    def test_empty_french_string_is_absent(self):
        self.assertEqual(list(flatten_localized_values("Hello", "")), [("Hello", None)])

    def test_equal_length_lists_pair_by_index(self):
        pairs = list(flatten_localized_values(["one", "two", "three"], ["un", "deux", "trois"]))
        self.assertEqual(pairs, [("one", "un"), ("two", "deux"), ("three", "trois")])

    def test_shorter_french_list(self):
        pairs = list(flatten_localized_values(["one", "two", "three"], ["un"]))
        self.assertEqual(pairs, [("one", "un"), ("two", None), ("three", None)])

    def test_missing_french_list(self):
        pairs = list(flatten_localized_values(["one", "two"], None))
        self.assertEqual(pairs, [("one", None), ("two", None)])

    def test_nested_lists_keep_traversal_order(self):
        english = ["a", ["b", ["c", "d"]], "e"]
        french = ["A", ["B", ["C"]], "E"]
        pairs = list(flatten_localized_values(english, french))
        self.assertEqual(pairs, [("a", "A"), ("b", "B"), ("c", "C"), ("d", None), ("e", "E")])

    def test_french_shape_mismatch_yields_absent_values(self):
        pairs = list(flatten_localized_values([["x", "y"]], ["not a list"]))
        self.assertEqual(pairs, [("x", None), ("y", None)])

    def test_link_objects_are_skipped(self):
        link = {"sys": {"type": "Link", "linkType": "Entry", "id": "abc"}}
        pairs = list(flatten_localized_values(["text", link, 42], ["texte", link, 42]))
        self.assertEqual(pairs, [("text", "texte")])

    def test_unexpected_english_shape_yields_nothing(self):
        self.assertEqual(list(flatten_localized_values(None, "Bonjour")), [])
        self.assertEqual(list(flatten_localized_values({"nodeType": "document"}, None)), [])
        self.assertEqual(list(flatten_localized_values(True, None)), [])

    def test_deep_nesting_does_not_recurse(self):
        english = "leaf"
        french = "feuille"
        for _ in range(5000):
            english = [english]
            french = [french]
        self.assertEqual(list(flatten_localized_values(english, french)), [("leaf", "feuille")])


class TestExtractLeafPairs(unittest.TestCase):

    def test_only_localized_fields_are_extracted(self):
        content_type = make_content_type("article", {"title": True, "slug": False})
        entry = make_entry("entry-1", {
            "title": {"en-US": "Hello", "fr-CA": "Bonjour"},
            "slug": {"en-US": "hello"},
        })
        pairs = list(extract_leaf_pairs(entry, content_type, "en-US", "fr-CA"))
        self.assertEqual(pairs, [LeafPair("article", "entry-1", "title", "Hello", "Bonjour")])

    def test_field_not_in_schema_is_skipped(self):
        content_type = make_content_type("article", {"title": True})
        entry = make_entry("entry-1", {"legacy": {"en-US": "Old"}})
        self.assertEqual(list(extract_leaf_pairs(entry, content_type, "en-US", "fr-CA")), [])


class TestContentfulClientPagination(unittest.TestCase):

    def test_paginate_advances_skip_until_total(self):
        session = MagicMock()
        session.headers = {}
        session.get.side_effect = [
            _response(payload={"total": 5, "items": [{"n": 1}, {"n": 2}]}),
            _response(payload={"total": 5, "items": [{"n": 3}, {"n": 4}]}),
            _response(payload={"total": 5, "items": [{"n": 5}]}),
        ]
        client = ContentfulClient("token", api_url="https://api.test", session=session)

        items = list(client.paginate("spaces/s/environments/e/entries", {"content_type": "article"}, page_size=2))

        self.assertEqual([item["n"] for item in items], [1, 2, 3, 4, 5])
        skips = [call.kwargs["params"]["skip"] for call in session.get.call_args_list]
        self.assertEqual(skips, [0, 2, 4])
        first_params = session.get.call_args_list[0].kwargs["params"]
        self.assertEqual(first_params["limit"], 2)
        self.assertEqual(first_params["content_type"], "article")
        self.assertEqual(session.headers["Authorization"], "Bearer token")

    def test_entries_request_link_expansion(self):
        session = MagicMock()
        session.headers = {}
        session.get.return_value = _response(payload={"total": 0, "items": []})
        client = ContentfulClient("token", api_url="https://api.test", session=session)

        list(client.entries("space", "master", "article", include=10, page_size=1000))

        url = session.get.call_args.args[0]
        params = session.get.call_args.kwargs["params"]
        self.assertEqual(url, "https://api.test/spaces/space/environments/master/entries")
        self.assertEqual(params, {"content_type": "article", "include": 10, "limit": 1000, "skip": 0})

    def test_http_error_raises_upstream_error(self):
        session = MagicMock()
        session.headers = {}
        session.get.return_value = _response(status_code=401, payload={"message": "Access token invalid"})
        client = ContentfulClient("token", session=session)

        with self.assertRaises(UpstreamServiceError) as ctx:
            client.get("spaces/s/environments/e/content_types")
        self.assertEqual(ctx.exception.status_code, 401)
        self.assertIn("Access token invalid", str(ctx.exception))

    def test_transport_error_raises_upstream_error(self):
        session = MagicMock()
        session.headers = {}
        session.get.side_effect = requests.ConnectionError("boom")
        client = ContentfulClient("token", session=session)

        with self.assertRaises(UpstreamServiceError):
            client.get("spaces/s")


    def test_invalid_json_raises_upstream_error(self):
        session = MagicMock()
        session.headers = {}
        response = _response()
        response.json.side_effect = requests.exceptions.JSONDecodeError("Expecting value", "<html>", 0)
        session.get.return_value = response
        client = ContentfulClient("token", session=session)

        with self.assertRaises(UpstreamServiceError) as ctx:
            client.get("spaces/s/environments/e/entries")
        self.assertIn("invalid JSON", str(ctx.exception))


class TestScanSpace(unittest.TestCase):

    def test_scan_yields_pairs_in_enumeration_order(self):
        content_types = [
            make_content_type("article", {"title": True}),
            make_content_type("faq", {"answers": True}),
        ]
        entries = {
            "article": [
                make_entry("a1", {"title": {"en-US": "Hello"}}),
                make_entry("a2", {"title": {"en-US": "World", "fr-CA": "Monde"}}),
            ],
            "faq": [make_entry("f1", {"answers": {"en-US": ["Yes", "No"], "fr-CA": ["Oui"]}})],
        }
        client = FakeContentfulClient(content_types, entries)

        pairs = list(scan_space(client, "space", "master", make_app_config()))

        self.assertEqual(pairs, [
            LeafPair("article", "a1", "title", "Hello", None),
            LeafPair("article", "a2", "title", "World", "Monde"),
            LeafPair("faq", "f1", "answers", "Yes", "Oui"),
            LeafPair("faq", "f1", "answers", "No", None),
        ])

    def test_excluded_content_type_is_never_requested(self):
        content_types = [make_content_type("asset", {"title": True}), make_content_type("article", {"title": True})]
        entries = {
            "asset": [make_entry("x", {"title": {"en-US": "Logo"}})],
            "article": [make_entry("a1", {"title": {"en-US": "Hello"}})],
        }
        client = FakeContentfulClient(content_types, entries)
        config = make_app_config(excluded_content_types=["asset"])

        pairs = list(scan_space(client, "space", "master", config))

        self.assertEqual(client.requested_types, ["article"])
        self.assertEqual([pair.content_type_id for pair in pairs], ["article"])

    def test_failing_content_type_does_not_abort_scan(self):
        content_types = [make_content_type("broken", {"title": True}), make_content_type("article", {"title": True})]
        entries = {
            "broken": UpstreamServiceError("contentful", "500 Internal Server Error"),
            "article": [make_entry("a1", {"title": {"en-US": "Hello"}})],
        }
        client = FakeContentfulClient(content_types, entries)

        with self.assertLogs("src.content_scanner", level="ERROR") as logs:
            pairs = list(scan_space(client, "space", "master", make_app_config()))

        self.assertEqual(pairs, [LeafPair("article", "a1", "title", "Hello", None)])
        self.assertTrue(any("broken" in line for line in logs.output))

    def test_malformed_entry_is_contained_to_its_content_type(self):
        content_types = [make_content_type("bad", {"title": True}), make_content_type("article", {"title": True})]
        entries = {
            "bad": [{"fields": {"title": {"en-US": "No sys block"}}}],
            "article": [make_entry("a1", {"title": {"en-US": "Hello"}})],
        }
        client = FakeContentfulClient(content_types, entries)

        with self.assertLogs("src.content_scanner", level="ERROR"):
            pairs = list(scan_space(client, "space", "master", make_app_config()))

        self.assertEqual([pair.entry_id for pair in pairs], ["a1"])

    def test_non_json_page_is_contained_to_its_content_type(self):
        def get(url, params=None, timeout=None):
            if url.endswith("/content_types"):
                return _response(payload={"total": 2, "items": [
                    make_content_type("bad", {"t": True}),
                    make_content_type("ok", {"t": True}),
                ]})
            if params["content_type"] == "bad":
                response = _response()
                response.json.side_effect = requests.exceptions.JSONDecodeError("Expecting value", "<html>", 0)
                return response
            return _response(payload={"total": 1, "items": [make_entry("e1", {"t": {"en-US": "Hello"}})]})

        session = MagicMock()
        session.headers = {}
        session.get.side_effect = get
        client = ContentfulClient("token", api_url="https://api.test", session=session)

        with self.assertLogs("src.content_scanner", level="ERROR") as logs:
            pairs = list(scan_space(client, "space", "master", make_app_config()))

        self.assertEqual(pairs, [LeafPair("ok", "e1", "t", "Hello", None)])
        self.assertTrue(any("'bad'" in line for line in logs.output))

    def test_content_type_without_id_is_skipped(self):
        content_types = [{"name": "No sys block", "fields": []}, make_content_type("article", {"title": True})]
        entries = {"article": [make_entry("a1", {"title": {"en-US": "Hello"}})]}
        client = FakeContentfulClient(content_types, entries)

        with self.assertLogs("src.content_scanner", level="ERROR"):
            pairs = list(scan_space(client, "space", "master", make_app_config()))

        self.assertEqual(client.requested_types, ["article"])
        self.assertEqual(pairs, [LeafPair("article", "a1", "title", "Hello", None)])


if __name__ == '__main__':
    unittest.main()
