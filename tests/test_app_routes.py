#!/usr/bin/env python3
"""
Unit tests for the storefront routes: category archives with the tag filter
and the tag filter settings page.
"""
import base64
import re
import unittest
from unittest.mock import patch, MagicMock
import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from app import app
from src.database.catalog import CatalogError
from src.filters.models import AllCategories, Category, SpecificCategories, Tag

SHOES = Category(term_id=5, slug='shoes', name='Shoes')
HATS = Category(term_id=6, slug='hats', name='Hats')
BLUE = Tag(term_id=12, slug='blue', name='Blue', count=2)
RED = Tag(term_id=11, slug='red', name='Red', count=1)


def basic_auth(username='admin', password='test-password'):
    token = base64.b64encode(f"{username}:{password}".encode('utf-8')).decode('ascii')
    return {'Authorization': f'Basic {token}'}


def active_tags(html):
    """data-tag values of buttons rendered as active."""
    return re.findall(r'tag-filter__button is-active"\s+data-tag="([^"]*)"', html)


class RouteTestCase(unittest.TestCase):

    def setUp(self):
        app.config['TESTING'] = True
        app.config['WTF_CSRF_ENABLED'] = False
        self.client = app.test_client()

        catalog_patcher = patch('app.catalog')
        self.catalog = catalog_patcher.start()
        self.addCleanup(catalog_patcher.stop)

        allow_patcher = patch('app.get_allow_list', return_value=AllCategories())
        self.get_allow_list = allow_patcher.start()
        self.addCleanup(allow_patcher.stop)

        self.catalog.get_category_by_slug.return_value = SHOES
        self.catalog.find_product_ids.return_value = [1, 2, 3]
        self.catalog.find_tags.return_value = [RED, BLUE, BLUE]
        self.catalog.list_products.return_value = [
            {'id': 1, 'title': 'Suede Boot', 'slug': 'suede-boot', 'price': 120},
        ]
        self.catalog.count_products.return_value = 1


class TestCategoryArchive(RouteTestCase):

    def test_filter_shows_sorted_tags_with_show_all_active(self):
        response = self.client.get('/product-category/shoes')
        self.assertEqual(response.status_code, 200)
        html = response.get_data(as_text=True)
        self.assertEqual(re.findall(r'data-tag="([^"]*)"', html), ['', 'blue', 'red'])
        self.assertEqual(active_tags(html), [''])
        self.assertIn('js/tag-filter.js', html)
        self.assertIn('Suede Boot', html)
        self.catalog.find_product_ids.assert_called_once_with('shoes')

    def test_selected_tag_and_passthrough_fields(self):
        response = self.client.get('/product-category/shoes?product_tag=blue&orderby=price')
        html = response.get_data(as_text=True)
        self.assertEqual(active_tags(html), ['blue'])
        self.assertIn('<input type="hidden" name="product_tag" value="blue">', html)
        self.assertIn('<input type="hidden" name="orderby" value="price">', html)
        self.catalog.list_products.assert_called_once_with('shoes', 'blue', 1, 24)

    def test_buttons_link_to_resubmit_url(self):
        response = self.client.get('/product-category/shoes?product_tag=blue&orderby=price')
        html = response.get_data(as_text=True)
        self.assertIn('href="?product_tag=red&amp;orderby=price"', html)
        self.assertIn('href="?product_tag=&amp;orderby=price"', html)

    def test_unmatched_tag_marks_nothing_active(self):
        response = self.client.get('/product-category/shoes?product_tag=green')
        html = response.get_data(as_text=True)
        self.assertEqual(response.status_code, 200)
        self.assertEqual(active_tags(html), [])
        self.assertIn('<input type="hidden" name="product_tag" value="green">', html)

    def test_passthrough_values_are_escaped(self):
        response = self.client.get('/product-category/shoes?q=%22%3E%3Cscript%3E')
        html = response.get_data(as_text=True)
        self.assertNotIn('"><script>', html)
        self.assertIn('name="q" value="&#34;&gt;&lt;script&gt;"', html)

    def test_disabled_category_hides_filter_and_assets(self):
        self.get_allow_list.return_value = SpecificCategories(frozenset({9}))
        response = self.client.get('/product-category/shoes')
        html = response.get_data(as_text=True)
        self.assertEqual(response.status_code, 200)
        self.assertNotIn('<form class="tag-filter__form"', html)
        self.assertNotIn('js/tag-filter.js', html)
        self.catalog.find_product_ids.assert_not_called()

    def test_enabled_category_in_specific_allow_list(self):
        self.get_allow_list.return_value = SpecificCategories(frozenset({5, 9}))
        html = self.client.get('/product-category/shoes').get_data(as_text=True)
        self.assertIn('<form class="tag-filter__form"', html)

    def test_no_tags_renders_no_filter(self):
        self.catalog.find_tags.return_value = []
        html = self.client.get('/product-category/shoes').get_data(as_text=True)
        self.assertNotIn('<form class="tag-filter__form"', html)

    def test_tag_lookup_failure_still_renders_page(self):
        self.catalog.find_tags.side_effect = CatalogError("taxonomy lookup failed")
        response = self.client.get('/product-category/shoes')
        self.assertEqual(response.status_code, 200)
        html = response.get_data(as_text=True)
        self.assertNotIn('<form class="tag-filter__form"', html)
        self.assertIn('Suede Boot', html)

    def test_unknown_category_is_404(self):
        self.catalog.get_category_by_slug.return_value = None
        response = self.client.get('/product-category/nope')
        self.assertEqual(response.status_code, 404)

    def test_listing_failure_is_500(self):
        self.catalog.list_products.side_effect = CatalogError("down")
        response = self.client.get('/product-category/shoes')
        self.assertEqual(response.status_code, 500)
        self.assertIn('Unable to load products.', response.get_data(as_text=True))


class TestShop(RouteTestCase):

    def test_shop_never_shows_filter(self):
        self.catalog.list_all_products.return_value = [{'id': 1, 'title': 'Cap', 'slug': 'cap', 'price': None}]
        response = self.client.get('/shop')
        self.assertEqual(response.status_code, 200)
        html = response.get_data(as_text=True)
        self.assertIn('Cap', html)
        self.assertNotIn('tag-filter', html)
        self.catalog.find_tags.assert_not_called()


class TestTagFilterSettings(RouteTestCase):

    def setUp(self):
        super().setUp()
        self.catalog.get_all_categories.return_value = [HATS, SHOES]
        set_patcher = patch('app.set_allow_list', return_value=True)
        self.set_allow_list = set_patcher.start()
        self.addCleanup(set_patcher.stop)

    def test_requires_credentials(self):
        response = self.client.get('/admin/tag-filter')
        self.assertEqual(response.status_code, 401)
        self.assertIn('Basic', response.headers.get('WWW-Authenticate', ''))

    def test_rejects_wrong_password(self):
        response = self.client.get('/admin/tag-filter', headers=basic_auth(password='wrong'))
        self.assertEqual(response.status_code, 401)

    def test_all_categories_checked_by_default(self):
        response = self.client.get('/admin/tag-filter', headers=basic_auth())
        self.assertEqual(response.status_code, 200)
        html = response.get_data(as_text=True)
        self.assertIn('value="5" checked', html)
        self.assertIn('value="6" checked', html)

    def test_specific_categories_checked(self):
        self.get_allow_list.return_value = SpecificCategories(frozenset({5}))
        html = self.client.get('/admin/tag-filter', headers=basic_auth()).get_data(as_text=True)
        self.assertIn('value="5" checked', html)
        self.assertNotIn('value="6" checked', html)

    def test_no_categories_message(self):
        self.catalog.get_all_categories.side_effect = CatalogError("down")
        html = self.client.get('/admin/tag-filter', headers=basic_auth()).get_data(as_text=True)
        self.assertIn('No product categories found.', html)

    def test_selecting_every_category_saves_all(self):
        response = self.client.post(
            '/admin/tag-filter',
            data={'tag_filter_categories': ['5', '6']},
            headers=basic_auth(),
        )
        self.assertEqual(response.status_code, 302)
        self.set_allow_list.assert_called_once_with(AllCategories())

    def test_selecting_some_categories_saves_set(self):
        self.client.post(
            '/admin/tag-filter',
            data={'tag_filter_categories': ['5']},
            headers=basic_auth(),
        )
        self.set_allow_list.assert_called_once_with(SpecificCategories(frozenset({5})))

    def test_unknown_ids_do_not_collapse_to_all(self):
        self.client.post(
            '/admin/tag-filter',
            data={'tag_filter_categories': ['7', '8']},
            headers=basic_auth(),
        )
        self.set_allow_list.assert_called_once_with(SpecificCategories(frozenset()))

    def test_selecting_nothing_disables_everywhere(self):
        self.client.post('/admin/tag-filter', data={}, headers=basic_auth())
        self.set_allow_list.assert_called_once_with(SpecificCategories(frozenset()))

    def test_post_requires_credentials(self):
        response = self.client.post('/admin/tag-filter', data={'tag_filter_categories': ['5']})
        self.assertEqual(response.status_code, 401)
        self.set_allow_list.assert_not_called()


class TestSecurityHeaders(RouteTestCase):

    def test_headers_present(self):
        self.catalog.list_all_products.return_value = []
        response = self.client.get('/shop')
        self.assertEqual(response.headers['X-Frame-Options'], 'SAMEORIGIN')
        self.assertEqual(response.headers['X-Content-Type-Options'], 'nosniff')


if __name__ == '__main__':
    unittest.main()
