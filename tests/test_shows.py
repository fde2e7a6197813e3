"""
Tests for show list persistence and filtering (broadway_lottery/common/shows.py)
"""
import json

import pytest

from broadway_lottery.common.models import ShowConfig
from broadway_lottery.common.shows import (
    compare_show_names,
    extract_listing_titles,
    filter_shows,
    load_shows,
    merge_discovered,
    parse_enabled_answer,
    parse_filter,
    parse_ticket_answer,
    partition_enabled,
    save_shows,
)


@pytest.fixture()
def broadway_direct_shows():
    return [
        ShowConfig(name="Aladdin", url="https://lottery.broadwaydirect.com/show/aladdin/"),
        ShowConfig(name="Wicked", url="https://lottery.broadwaydirect.com/show/wicked/"),
        ShowConfig(name="MJ", url="https://lottery.broadwaydirect.com/show/mj-ny/", enabled=False),
        ShowConfig(name="Stranger Things", url="https://lottery.broadwaydirect.com/show/st-nyc/"),
    ]


class TestLoadShows:
    def test_missing_file(self, tmp_path):
        assert load_shows(tmp_path / "nope.json") == []

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "shows.json"
        path.write_text("[{not json")
        assert load_shows(path) == []

    def test_non_array(self, tmp_path):
        path = tmp_path / "shows.json"
        path.write_text('{"name": "Wicked"}')
        assert load_shows(path) == []

    def test_skips_invalid_entries(self, tmp_path):
        path = tmp_path / "shows.json"
        path.write_text(json.dumps([
            {"name": "Art", "num_tickets": 2},
            {"num_tickets": 1},
            "Chess",
        ]))
        shows = load_shows(path)
        assert [s.name for s in shows] == ["Art"]


class TestSaveShows:
    def test_round_trip(self, tmp_path, broadway_direct_shows):
        shows = broadway_direct_shows + [
            ShowConfig(name="Chess", num_tickets=0),
            ShowConfig(name="Art", num_tickets=1),
        ]
        path = tmp_path / "nested" / "shows.json"
        save_shows(path, shows)

        reloaded = load_shows(path)
        assert reloaded == shows
        assert [s.is_enabled("2") for s in reloaded] == [s.is_enabled("2") for s in shows]
        assert [s.tickets_for("2") for s in reloaded] == [s.tickets_for("2") for s in shows]

    def test_file_format(self, tmp_path):
        path = tmp_path / "shows.json"
        save_shows(path, [ShowConfig(name="Hell's Kitchen", num_tickets=2)])

        text = path.read_text(encoding="utf-8")
        assert text.endswith("]\n")
        assert '  {\n    "name": "Hell\'s Kitchen",\n    "num_tickets": 2\n  }' in text
        assert "url" not in text

    def test_saving_twice_is_stable(self, tmp_path, broadway_direct_shows):
        path = tmp_path / "shows.json"
        save_shows(path, broadway_direct_shows)
        first = path.read_text()
        save_shows(path, load_shows(path))
        assert path.read_text() == first


class TestFilter:
    def test_parse_filter(self):
        assert parse_filter(" Wicked, ALADDIN ,, ") == ["wicked", "aladdin"]
        assert parse_filter("") == []
        assert parse_filter(None) == []

    def test_no_terms_keeps_all(self, broadway_direct_shows):
        assert filter_shows(broadway_direct_shows, []) == broadway_direct_shows

    def test_filter_by_name(self, broadway_direct_shows):
        selected = filter_shows(broadway_direct_shows, parse_filter("wicked"))
        assert [s.name for s in selected] == ["Wicked"]

    def test_filter_by_url(self, broadway_direct_shows):
        selected = filter_shows(broadway_direct_shows, ["st-nyc"])
        assert [s.name for s in selected] == ["Stranger Things"]

    def test_filter_is_case_insensitive(self, broadway_direct_shows):
        selected = filter_shows(broadway_direct_shows, parse_filter("ALADDIN,mj"))
        assert [s.name for s in selected] == ["Aladdin", "MJ"]

    def test_unmatched_filter_is_empty(self, broadway_direct_shows):
        assert filter_shows(broadway_direct_shows, ["hamilton"]) == []

    def test_partition(self, broadway_direct_shows):
        shows = broadway_direct_shows + [ShowConfig(name="Chess", num_tickets=0)]
        enabled, disabled = partition_enabled(shows, "2")
        assert [s.name for s in enabled] == ["Aladdin", "Wicked", "Stranger Things"]
        assert [s.name for s in disabled] == ["MJ", "Chess"]


class TestDiscoveryMerge:
    def test_keeps_user_choices(self):
        discovered = [
            ShowConfig(name="Wicked", url="https://lottery.broadwaydirect.com/show/wicked/", enabled=True),
            ShowConfig(name="Six", url="https://lottery.broadwaydirect.com/show/six-ny/", enabled=True),
        ]
        existing = [ShowConfig(name="Wicked", url="old", enabled=False)]

        merged = merge_discovered(discovered, existing)
        assert [(s.name, s.enabled) for s in merged] == [("Wicked", False), ("Six", True)]
        assert merged[0].url == "https://lottery.broadwaydirect.com/show/wicked/"

    def test_drops_shows_no_longer_listed(self):
        merged = merge_discovered([], [ShowConfig(name="Gone", enabled=True)])
        assert merged == []


class TestListingComparison:
    HTML = """
    <div class="lottery_show">
      <div class="lottery_show_title">Mamma Mia!</div>
    </div>
    <div class="lottery_show">
      <div class="lottery_show_title title-long">
        Hell&#39;s Kitchen
      </div>
    </div>
    <div class="lottery_show">
      <div class="lottery_show_title">Art</div>
    </div>
    <div class="lottery_show">
      <div class="lottery_show_title">Art</div>
    </div>
    """

    def test_extract_titles(self):
        assert extract_listing_titles(self.HTML) == ["Art", "Hell's Kitchen", "Mamma Mia!"]

    def test_extract_titles_tolerates_markup_variants(self):
        page = (
            '<div class="lottery_show_title st_uppercase" data-id="1">Art</div>'
            "<div class='lottery_show_title st_uppercase'>Chess</div>"
            '<div class="lottery_show_title st_uppercase"><span>Kyoto</span></div>'
        )
        assert extract_listing_titles(page) == ["Art", "Chess", "Kyoto"]

    def test_compare(self):
        missing, extra = compare_show_names(
            ["Art", "Hell's Kitchen", "Mamma Mia!"],
            ["Art", "Chess"],
        )
        assert missing == ["Hell's Kitchen", "Mamma Mia!"]
        assert extra == ["Chess"]


class TestConfigureAnswers:
    @pytest.mark.parametrize("answer,expected", [
        ("", 2),
        ("  ", 2),
        ("0", 0),
        ("1", 1),
        ("3", 2),
        ("-1", 2),
        ("two", 2),
    ])
    def test_ticket_answer(self, answer, expected):
        assert parse_ticket_answer(answer, current=2) == expected

    @pytest.mark.parametrize("answer,expected", [
        ("", False),
        ("y", True),
        ("YES", True),
        ("n", False),
        ("maybe", False),
    ])
    def test_enabled_answer(self, answer, expected):
        assert parse_enabled_answer(answer, current=False) == expected
