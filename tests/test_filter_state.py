#!/usr/bin/env python3
"""
Tests for deriving the tag selection from query parameters.
"""
import unittest
import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from src.filters.state import derive_filter_state
from src.utils.validation import parse_page_number, sanitize_text_field


class TestDeriveFilterState(unittest.TestCase):

    def test_selected_tag_and_passthrough(self):
        state = derive_filter_state({"product_tag": "blue", "orderby": "price"})
        self.assertEqual(state.selected_slug, "blue")
        self.assertEqual(state.passthrough, {"orderby": "price"})
        self.assertTrue(state.is_filtered)

    def test_absent_tag_means_all(self):
        state = derive_filter_state({"orderby": "price"})
        self.assertEqual(state.selected_slug, "")
        self.assertFalse(state.is_filtered)

    def test_no_params(self):
        for params in (None, {}):
            state = derive_filter_state(params)
            self.assertEqual(state.selected_slug, "")
            self.assertEqual(state.passthrough, {})

    def test_passthrough_is_query_minus_tag_key(self):
        query = {
            "product_tag": "red",
            "orderby": "price",
            "page": "3",
            "min_price": "10",
            "q": "<b>boots</b>",
        }
        state = derive_filter_state(query)
        expected = dict(query)
        del expected["product_tag"]
        self.assertEqual(state.passthrough, expected)

    def test_multi_value_params(self):
        query = {"product_tag": ["blue", "red"], "color": ["a", "b"]}
        state = derive_filter_state(query)
        self.assertEqual(state.selected_slug, "blue")
        self.assertEqual(state.passthrough, {"color": ["a", "b"]})

    def test_custom_tag_key(self):
        state = derive_filter_state({"tag": "blue", "product_tag": "red"}, tag_key="tag")
        self.assertEqual(state.selected_slug, "blue")
        self.assertEqual(state.passthrough, {"product_tag": "red"})

    def test_selected_tag_is_sanitized(self):
        state = derive_filter_state({"product_tag": "<script>alert(1)</script>blue\n"})
        self.assertEqual(state.selected_slug, "blue")

    def test_unmatched_tag_is_kept(self):
        state = derive_filter_state({"product_tag": "does-not-exist"})
        self.assertEqual(state.selected_slug, "does-not-exist")


class TestSanitizeTextField(unittest.TestCase):

    def test_plain_slug_unchanged(self):
        self.assertEqual(sanitize_text_field("blue-suede"), "blue-suede")

    def test_strips_markup(self):
        self.assertEqual(sanitize_text_field("<em>red</em>"), "red")

    def test_entities_are_left_as_typed(self):
        self.assertEqual(sanitize_text_field("&lt;b&gt;red&lt;/b&gt;"), "&lt;b&gt;red&lt;/b&gt;")
        self.assertEqual(sanitize_text_field("black&amp;white"), "black&amp;white")

    def test_entities_survive_tag_stripping(self):
        self.assertEqual(sanitize_text_field("<em>black&amp;white</em>"), "black&amp;white")

    def test_removes_control_characters_and_collapses_whitespace(self):
        self.assertEqual(sanitize_text_field("  red\x00\t\r\n blue  "), "red blue")

    def test_removes_percent_encoded_octets(self):
        self.assertEqual(sanitize_text_field("red%0Ablue"), "redblue")
        self.assertEqual(sanitize_text_field("red%2%541"), "red")

    def test_bytes_are_decoded(self):
        self.assertEqual(sanitize_text_field("piros-cipő".encode("utf-8")), "piros-cipő")

    def test_non_strings_become_empty(self):
        for value in (None, 5, ["blue"], {"a": 1}):
            self.assertEqual(sanitize_text_field(value), "")


class TestParsePageNumber(unittest.TestCase):

    def test_valid(self):
        self.assertEqual(parse_page_number("3"), 3)

    def test_invalid_falls_back(self):
        for value in (None, "", "abc", "0", "-2"):
            self.assertEqual(parse_page_number(value), 1)


if __name__ == '__main__':
    unittest.main()
