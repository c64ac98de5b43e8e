"""
test_marketplace.py — Category / free-text filtering of public maps.
"""

from spotmarket.services.marketplace import filter_maps

MAPS = [
    {"title": "Tokyo Cafe Crawl", "description": "Pour-over spots", "category": "cafe"},
    {"title": "Ramen Nights", "description": "Late-night CAFE and noodles", "category": "restaurant"},
    {"title": "Hakone Trails", "description": "Day hikes", "category": "nature"},
]


def titles(maps):
    return [m["title"] for m in maps]


class TestFilterMaps:
    def test_no_filters_returns_everything(self):
        assert filter_maps(MAPS) == MAPS

    def test_all_category_is_no_filter(self):
        assert filter_maps(MAPS, category="all") == MAPS

    def test_category(self):
        assert titles(filter_maps(MAPS, category="nature")) == ["Hakone Trails"]

    def test_text_is_case_insensitive_over_title_and_description(self):
        assert titles(filter_maps(MAPS, query="cafe")) == ["Tokyo Cafe Crawl", "Ramen Nights"]

    def test_filters_intersect(self):
        assert titles(filter_maps(MAPS, category="restaurant", query="cafe")) == ["Ramen Nights"]

    def test_blank_query_ignored(self):
        assert filter_maps(MAPS, query="   ") == MAPS

    def test_no_match(self):
        assert filter_maps(MAPS, category="sports") == []


class TestMarketplaceRoute:
    async def test_only_public_maps_listed(self, api_client, make_user, make_map):
        headers, _ = await make_user()
        await make_map(headers, title="Hidden Gems")
        await make_map(headers, title="Tokyo Cafe Crawl", visibility="public", category="cafe")
        await make_map(headers, title="Hakone Trails", visibility="public", category="nature")

        r = await api_client.get("/api/v1/maps/marketplace")
        assert r.status_code == 200
        assert sorted(m["title"] for m in r.json()) == ["Hakone Trails", "Tokyo Cafe Crawl"]

    async def test_query_params(self, api_client, make_user, make_map):
        headers, _ = await make_user()
        await make_map(headers, title="Tokyo Cafe Crawl", visibility="public", category="cafe")
        await make_map(headers, title="Hakone Trails", visibility="public", category="nature")

        r = await api_client.get("/api/v1/maps/marketplace", params={"category": "cafe", "q": "TOKYO"})
        assert [m["title"] for m in r.json()] == ["Tokyo Cafe Crawl"]

    async def test_no_database_returns_empty_list(self, client):
        r = await client.get("/api/v1/maps/marketplace")
        assert r.status_code == 200
        assert r.json() == []
