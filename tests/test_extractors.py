"""Tests for listing page ID extraction."""

from author_feed.extractors import (
    extract_article_ids,
    ids_from_anchors,
    ids_from_data_attributes,
    ids_from_data_island,
    ids_from_raw_json_keys,
    walk_json_ids,
)

LISTING_HTML = """
<html><body>
  <a href="/p/1111111111">First</a>
  <a href="https://www.36kr.com/p/2222222222?f=author">Second</a>
  <a href="/p/1111111111#comments">First again</a>
  <a href="/user/5081058">Author</a>
  <a href="/p/3333333333/">Third</a>
  <a href="/p/2222222222">Second again</a>
  <a href="/p/1234">Too short</a>
</body></html>
"""


class TestAnchorStrategy:
    def test_collects_article_links_in_order(self):
        assert list(ids_from_anchors(LISTING_HTML)) == [
            "1111111111",
            "2222222222",
            "1111111111",
            "3333333333",
            "2222222222",
        ]

    def test_ignores_short_ids_and_other_paths(self):
        html = '<a href="/p/1234">x</a><a href="/topic/99999999">y</a><a href="/p/12345abc">z</a>'
        assert list(ids_from_anchors(html)) == []


class TestExtractArticleIds:
    def test_deduplicates_preserving_first_occurrence(self):
        ids = extract_article_ids(LISTING_HTML, max_items=30)
        assert ids == ["1111111111", "2222222222", "3333333333"]

    def test_caps_at_max_items(self):
        assert extract_article_ids(LISTING_HTML, max_items=2) == ["1111111111", "2222222222"]

    def test_zero_cap_returns_nothing(self):
        assert extract_article_ids(LISTING_HTML, max_items=0) == []

    def test_malformed_marked_section_yields_nothing(self):
        assert extract_article_ids("<html><![foo bar</html>", max_items=5) == []

    def test_links_before_malformed_markup_still_found(self):
        html = '<a href="/p/1111111111">a</a><![foo bar'
        assert extract_article_ids(html, max_items=5) == ["1111111111"]

    def test_is_deterministic(self):
        first = extract_article_ids(LISTING_HTML, max_items=10)
        second = extract_article_ids(LISTING_HTML, max_items=10)
        assert first == second

    def test_later_strategies_not_invoked_once_cap_is_met(self):
        calls = []

        def first(html):
            calls.append("first")
            return ["10000001", "10000002"]

        def second(html):
            calls.append("second")
            return ["10000003"]

        ids = extract_article_ids("<html></html>", max_items=2, strategies=[first, second])

        assert ids == ["10000001", "10000002"]
        assert calls == ["first"]

    def test_falls_through_strategies_until_cap(self):
        html = """
        <a href="/p/1111111111">a</a>
        <div data-article-id="2222222222"></div>
        <script>window.initialState={"list":[{"itemId":"3333333333"}]}</script>
        """
        assert extract_article_ids(html, max_items=10) == ["1111111111", "2222222222", "3333333333"]


class TestDataAttributes:
    def test_reads_known_id_attributes(self):
        html = """
        <div data-article-id="5555555555"></div>
        <li data-item-id="6666666666"></li>
        <span data-id="42"></span>
        <span data-count="77777777"></span>
        """
        assert list(ids_from_data_attributes(html)) == ["5555555555", "6666666666"]


class TestDataIsland:
    def test_walks_initial_state_assignment(self):
        html = """
        <script>
        window.initialState = {"userInfo": {"userId": "5081058"},
          "articleList": [{"itemId": 4444444444, "statCollect": 123456,
                           "templateMaterial": {"id": "4444444444", "widgetTitle": "t"}},
                          {"itemId": "5555555555", "index": 3}]};
        var other = 1;
        </script>
        """
        assert list(ids_from_data_island(html)) == ["4444444444", "4444444444", "5555555555"]

    def test_reads_json_script_blocks(self):
        html = """
        <script id="__NEXT_DATA__" type="application/json">
          {"props": {"pageProps": {"posts": [{"articleId": "8888888888"}]}}}
        </script>
        <script type="application/ld+json">{"itemListElement": [{"id": "9999999999"}]}</script>
        """
        assert list(ids_from_data_island(html)) == ["8888888888", "9999999999"]

    def test_broken_json_is_skipped(self):
        html = '<script type="application/json">{"id": "1111111111",</script>'
        assert list(ids_from_data_island(html)) == []


class TestRawJsonScan:
    def test_matches_quoted_and_bare_values(self):
        text = '{"itemId":"1212121212","articleId": 3434343434, "id":"56565"}'
        assert list(ids_from_raw_json_keys(text)) == ["1212121212", "3434343434", "56565"]

    def test_ignores_short_numbers_under_id_keys(self):
        text = '{"id": "1234", "itemId": 99, "article_id": "0042"}'
        assert list(ids_from_raw_json_keys(text)) == []
        assert extract_article_ids(text, max_items=5) == []


class TestWalkJsonIds:
    def test_filters_on_key_and_value_shape(self):
        payload = {
            "id": "1234",
            "items": [{"id": "12345"}, {"itemId": 987654}, {"id": True}],
            "userId": "5081058",
            "meta": {"total": "123456789"},
        }
        assert list(walk_json_ids(payload)) == ["12345", "987654"]

    def test_custom_key_predicate(self):
        payload = {"userId": "5081058", "nested": [{"userId": 1}]}
        assert list(walk_json_ids(payload, key_predicate=lambda key: key == "userId")) == ["5081058"]

    def test_scalars_yield_nothing(self):
        assert list(walk_json_ids("1111111111")) == []
        assert list(walk_json_ids(None)) == []
