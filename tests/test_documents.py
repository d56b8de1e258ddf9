"""
Tests for document templates, normalizers and pure helpers.
"""

import json
from datetime import datetime
from datetime import timezone

import pytest

from pages import documents


class TestNormalizeProposal:
    """Tests for proposal normalization."""

    def test_missing_input_gives_template(self):
        """None, empty strings and broken JSON all fall back to the template."""
        template = documents.empty_proposal()
        assert documents.normalize_proposal(None) == template
        assert documents.normalize_proposal("") == template
        assert documents.normalize_proposal("{not json") == template
        assert documents.normalize_proposal([1, 2, 3]) == template
        assert documents.normalize_proposal("123") == template

    def test_template_shape(self):
        """Template has six work plan blocks and three pricing slots."""
        template = documents.empty_proposal()
        assert [b["number"] for b in template["workPlan"]] == [1, 2, 3, 4, 5, 6]
        assert all(b["bullets"] == [{"text": "", "highlightColor": ""}] for b in template["workPlan"])
        assert len(template["pricing"]) == 3
        assert template["goals"] == [""]
        assert template["noticed"] == [""]

    def test_json_string_is_parsed(self):
        """A JSON string is decoded before coercion."""
        doc = documents.normalize_proposal(json.dumps({"hero": {"title": "Hello"}}))
        assert doc["hero"] == {"title": "Hello", "subtitle": "", "introduction": ""}

    def test_missing_noticed_is_empty_list(self):
        """Documents stored before the noticed section existed get no noticed items."""
        doc = documents.normalize_proposal({"hero": {"title": "Hi"}})
        assert doc["noticed"] == []
        assert doc["goals"] == [""]

    def test_array_fields_absent_vs_wrong_type(self):
        """Absent arrays use the template; present but wrong-typed arrays become empty."""
        doc = documents.normalize_proposal({"goals": "oops", "workPlan": {"a": 1}})
        assert doc["goals"] == []
        assert doc["workPlan"] == []
        doc = documents.normalize_proposal({"hero": {}})
        assert len(doc["workPlan"]) == 6

    def test_work_plan_numbers_follow_position(self):
        """Stored numbers are replaced by the 1-based position."""
        doc = documents.normalize_proposal(
            {"workPlan": [{"number": 9, "heading": "A"}, {"number": 9, "heading": "B"}, {"heading": "C"}]}
        )
        assert [b["number"] for b in doc["workPlan"]] == [1, 2, 3]
        assert doc["workPlan"][0]["bullets"] == []

    def test_pricing_always_three_slots(self):
        """Extra pricing packages are dropped and missing ones filled."""
        doc = documents.normalize_proposal({"pricing": [{"name": str(i)} for i in range(5)]})
        assert [p["name"] for p in doc["pricing"]] == ["0", "1", "2"]
        assert doc["pricing"][0]["points"] == [""]

        doc = documents.normalize_proposal({"pricing": [{"name": "Solo", "points": ["a", 5]}]})
        assert doc["pricing"][0] == {"name": "Solo", "price": "", "points": ["a", ""]}
        assert doc["pricing"][1] == {"name": "", "price": "", "points": [""]}

    def test_non_string_leaves_become_blank(self):
        """Numbers and objects in string slots become empty strings."""
        doc = documents.normalize_proposal(
            {"hero": {"title": 42, "subtitle": None}, "visionHtml": {"x": 1}, "goals": ["a", 3, None]}
        )
        assert doc["hero"]["title"] == ""
        assert doc["hero"]["subtitle"] == ""
        assert doc["visionHtml"] == ""
        assert doc["goals"] == ["a", "", ""]

    def test_unknown_keys_dropped(self):
        """Only known keys survive normalization."""
        doc = documents.normalize_proposal({"hero": {"title": "T", "extra": 1}, "junk": True})
        assert "junk" not in doc
        assert "extra" not in doc["hero"]

    @pytest.mark.parametrize(
        "value",
        [
            None,
            {},
            {"hero": {"title": "T"}, "noticed": ["n"]},
            {"workPlan": [{"number": 4, "bullets": [{"text": "x"}]}], "pricing": []},
            "{broken",
        ],
    )
    def test_idempotent(self, value):
        """Normalizing a normalized document changes nothing."""
        once = documents.normalize_proposal(value)
        assert documents.normalize_proposal(once) == once
        assert documents.normalize_proposal(json.dumps(once)) == once

    def test_deeply_nested_json_gives_template(self):
        """JSON nested past the parser's recursion limit falls back to the template."""
        assert documents.normalize_proposal("[" * 100000) == documents.empty_proposal()
        assert documents.normalize("meta", "[" * 100000) == documents.empty_meta()


class TestNormalizeProgress:
    """Tests for progress normalization."""

    def test_template(self):
        """Template has one blank point and one blank payment entry."""
        template = documents.empty_progress()
        assert template["workPlan"]["points"] == [{"text": "", "done": False}]
        assert template["calendar"] == []
        assert template["payments"]["entries"] == [{"amount": "", "description": "", "date": ""}]

    def test_done_is_coerced_to_bool(self):
        """Truthy values become True and falsy values False."""
        doc = documents.normalize_progress(
            {"workPlan": {"points": [{"text": "a", "done": "yes"}, {"text": "b", "done": 0}, {"text": "c"}]}}
        )
        assert [p["done"] for p in doc["workPlan"]["points"]] == [True, False, False]

    def test_optional_leaves_present(self):
        """Calendar time/title and payment date default to blank strings."""
        doc = documents.normalize_progress(
            {"calendar": [{"date": "2026-01-01"}], "payments": {"entries": [{"amount": "10"}]}}
        )
        assert doc["calendar"][0] == {"date": "2026-01-01", "time": "", "title": "", "points": []}
        assert doc["payments"]["entries"][0] == {"amount": "10", "description": "", "date": ""}

    def test_nested_template_fallbacks(self):
        """Missing nested arrays fall back to their templates."""
        doc = documents.normalize_progress({"workPlan": {"brief": "b"}, "payments": {"agreedPrice": "100"}})
        assert doc["workPlan"] == {"brief": "b", "points": [{"text": "", "done": False}]}
        assert len(doc["payments"]["entries"]) == 1
        assert doc["calendar"] == []

    def test_idempotent(self):
        """Normalizing twice gives the same document."""
        once = documents.normalize_progress({"client": {"name": "A"}, "calendar": "bad"})
        assert documents.normalize_progress(once) == once


class TestNormalizeMeta:
    """Tests for meta-ads normalization."""

    def test_template(self):
        """Template has no campaigns and one blank plan point."""
        template = documents.empty_meta()
        assert template["results"]["campaignItems"] == []
        assert template["plan"]["points"] == [""]

    def test_flat_ad_metrics(self):
        """An ad without a metrics object reads its numbers from the ad itself."""
        doc = documents.normalize_meta(
            {
                "results": {
                    "campaignItems": [
                        {"name": "C", "adSets": [{"name": "S", "ads": [{"name": "Ad", "reach": "5", "amountSpent": "3"}]}]}
                    ]
                }
            }
        )
        ad = doc["results"]["campaignItems"][0]["adSets"][0]["ads"][0]
        assert ad == {
            "name": "Ad",
            "metrics": {"reach": "5", "messages": "", "followers": "", "amountSpent": "3", "timeDays": ""},
        }

    def test_wrong_typed_hierarchy(self):
        """Non-list campaign, ad set and ad collections become empty."""
        doc = documents.normalize_meta({"results": {"campaignItems": [{"adSets": "x"}, {"adSets": [{"ads": 4}]}]}})
        items = doc["results"]["campaignItems"]
        assert items[0]["adSets"] == []
        assert items[1]["adSets"][0]["ads"] == []

    def test_idempotent(self):
        """Normalizing twice gives the same document."""
        once = documents.normalize_meta(
            {"client": {"name": "A"}, "results": {"campaignItems": [{"adSets": [{"ads": [{"reach": "1"}]}]}]}}
        )
        assert documents.normalize_meta(once) == once


class TestAvailability:
    """Tests for availability checks."""

    def test_proposal_requires_title(self):
        """Whitespace-only titles do not count."""
        assert documents.is_available("proposal", {"hero": {"title": "X"}})
        assert not documents.is_available("proposal", {"hero": {"title": "   "}})
        assert not documents.is_available("proposal", None)

    def test_progress_and_meta_require_client_name(self):
        """Progress and meta-ads pages need a client name."""
        assert documents.is_available("progress", documents.normalize_progress({"client": {"name": "A"}}))
        assert not documents.is_available("meta", documents.empty_meta())

    def test_unknown_kind(self):
        """Unknown kinds are rejected."""
        with pytest.raises(ValueError):
            documents.normalize("article", {})


class TestParsePayload:
    """Tests for the save-path parser."""

    def test_invalid_json_raises(self):
        """A submitted string that is not JSON is an error."""
        with pytest.raises(ValueError):
            documents.parse_payload("proposal", "{bad json")

    def test_deeply_nested_json_raises_value_error(self):
        """Overly nested submissions are reported like any other bad JSON."""
        with pytest.raises(ValueError):
            documents.parse_payload("proposal", "[" * 100000)

    def test_valid_payloads_normalize(self):
        """Objects and JSON strings normalize as usual."""
        assert documents.parse_payload("meta", None) == documents.empty_meta()
        doc = documents.parse_payload("progress", json.dumps({"client": {"name": "A"}}))
        assert doc["client"]["name"] == "A"


class TestWorkPlanReducers:
    """Tests for work plan editing helpers."""

    def _doc(self):
        doc = documents.empty_proposal()
        for i, block in enumerate(doc["workPlan"]):
            block["heading"] = f"H{i + 1}"
        return doc

    def test_remove_renumbers(self):
        """Removing a block keeps numbering gapless."""
        doc = self._doc()
        result = documents.remove_work_plan_block(doc, 2)
        assert [b["number"] for b in result["workPlan"]] == [1, 2, 3, 4, 5]
        assert [b["heading"] for b in result["workPlan"]] == ["H1", "H2", "H4", "H5", "H6"]
        assert len(doc["workPlan"]) == 6

    def test_move_renumbers(self):
        """Moving a block keeps numbering in position order."""
        result = documents.move_work_plan_block(self._doc(), 0, 5)
        assert [b["heading"] for b in result["workPlan"]] == ["H2", "H3", "H4", "H5", "H6", "H1"]
        assert [b["number"] for b in result["workPlan"]] == [1, 2, 3, 4, 5, 6]

    def test_out_of_range_is_noop(self):
        """Invalid indexes leave the blocks alone."""
        doc = self._doc()
        assert documents.remove_work_plan_block(doc, 10) == doc
        assert documents.move_work_plan_block(doc, -1, 2) == doc


class TestLegacyMigration:
    """Tests for seeding campaigns from flat legacy results."""

    def test_flat_results_become_one_campaign(self):
        """Legacy numbers move into a single unnamed campaign, ad set and ad."""
        doc = documents.normalize_meta({"results": {"reach": "10", "amountSpent": "25"}})
        migrated = documents.seed_campaigns_from_legacy(doc)
        items = migrated["results"]["campaignItems"]
        assert len(items) == 1
        assert items[0]["name"] == ""
        assert items[0]["adSets"][0]["name"] == ""
        ad = items[0]["adSets"][0]["ads"][0]
        assert ad["name"] == ""
        assert ad["metrics"]["reach"] == "10"
        assert ad["metrics"]["amountSpent"] == "25"
        assert doc["results"]["campaignItems"] == []

    def test_second_run_is_noop(self):
        """Once campaigns exist nothing changes."""
        once = documents.normalize_meta_for_edit({"results": {"reach": "10"}})
        assert documents.seed_campaigns_from_legacy(once) == once

    def test_blank_legacy_values_are_skipped(self):
        """Blank or whitespace-only legacy values do not create a campaign."""
        doc = documents.normalize_meta({"results": {"reach": "  ", "campaignItems": []}})
        assert documents.seed_campaigns_from_legacy(doc)["results"]["campaignItems"] == []


class TestStampMetaChanges:
    """Tests for the updated-at stamps on meta-ads documents."""

    NOW = datetime(2026, 1, 2, 3, 4, 5, tzinfo=timezone.utc)

    def test_wallet_change_is_stamped(self):
        """Changing the wallet balance refreshes walletUpdatedAt."""
        before = documents.normalize_meta({"walletBalance": "10", "walletUpdatedAt": "old"})
        after = documents.normalize_meta({"walletBalance": "20"})
        stamped = documents.stamp_meta_changes(before, after, self.NOW)
        assert stamped["walletUpdatedAt"] == "2026-01-02T03:04:05.000Z"

    def test_unchanged_wallet_keeps_stamp(self):
        """An unchanged balance keeps the previous stamp."""
        before = documents.normalize_meta({"walletBalance": "10", "walletUpdatedAt": "old"})
        after = documents.normalize_meta({"walletBalance": "10"})
        assert documents.stamp_meta_changes(before, after, self.NOW)["walletUpdatedAt"] == "old"

    def test_ad_spend_change_is_stamped(self):
        """A change to any ad's amount spent refreshes amountSpentUpdatedAt."""
        tree = {"campaignItems": [{"adSets": [{"ads": [{"metrics": {"amountSpent": "5"}}]}]}]}
        before = documents.normalize_meta({"results": tree})
        after = documents.normalize_meta(
            {"results": {"campaignItems": [{"adSets": [{"ads": [{"metrics": {"amountSpent": "7"}}]}]}]}}
        )
        stamped = documents.stamp_meta_changes(before, after, self.NOW)
        assert stamped["results"]["amountSpentUpdatedAt"] == "2026-01-02T03:04:05.000Z"
        assert stamped["walletUpdatedAt"] == ""


class TestMetricRollups:
    """Tests for metric parsing and totals."""

    def test_parse_metric(self):
        """Commas and spaces are ignored; junk reads as zero."""
        assert documents.parse_metric("1,234") == 1234
        assert documents.parse_metric(" 12 ") == 12
        assert documents.parse_metric("") == 0
        assert documents.parse_metric("abc") == 0
        assert documents.parse_metric("inf") == 0
        assert documents.parse_metric(None) == 0

    def test_results_totals(self):
        """Totals sum every ad across campaigns and ad sets."""
        doc = documents.normalize_meta(
            {
                "results": {
                    "campaignItems": [
                        {
                            "adSets": [
                                {"ads": [{"metrics": {"reach": "1,000", "amountSpent": "10"}}, {"metrics": {"reach": "500"}}]},
                                {"ads": []},
                            ]
                        },
                        {"adSets": [{"ads": [{"metrics": {"reach": "x", "messages": "4"}}]}]},
                    ]
                }
            }
        )
        summary = documents.results_totals(doc)
        assert summary["campaigns"] == 2
        assert summary["adSets"] == 3
        assert summary["ads"] == 3
        assert summary["totals"]["reach"] == 1500
        assert summary["totals"]["messages"] == 4
        assert summary["totals"]["amountSpent"] == 10
        assert summary["byCampaign"][0]["totals"]["reach"] == 1500


class TestProgressSummary:
    """Tests for the public progress summary helpers."""

    def test_parse_amount(self):
        """Currency symbols, separators and words are ignored."""
        assert documents.parse_amount("$1,200.50 USD") == 1200.5
        assert documents.parse_amount("") == 0
        assert documents.parse_amount("free") == 0
        assert documents.parse_amount("1.2.3") == 1.2

    def test_calendar_timeline(self):
        """Entries are sorted by date and time; the next entry is the first ahead of now."""
        doc = documents.normalize_progress(
            {
                "calendar": [
                    {"date": "2026-03-16", "title": "Review"},
                    {"date": "2026-03-02", "time": "10:00", "title": "Kick-off"},
                    {"date": "", "title": "Undated"},
                    {"date": "soon", "title": "Unreadable"},
                ]
            }
        )
        timeline = documents.calendar_timeline(doc, datetime(2026, 3, 10))
        assert [i["title"] for i in timeline["items"]] == ["Kick-off", "Review", "Unreadable"]
        assert timeline["nextIndex"] == 1

        late = documents.calendar_timeline(doc, datetime(2027, 1, 1))
        assert late["nextIndex"] == 2

        assert documents.calendar_timeline(documents.empty_progress(), datetime(2026, 1, 1))["nextIndex"] == -1

    def test_calendar_with_aware_now(self):
        """Naive entry times compare against an aware now."""
        doc = documents.normalize_progress({"calendar": [{"date": "2026-03-02"}, {"date": "2026-03-20"}]})
        timeline = documents.calendar_timeline(doc, datetime(2026, 3, 10, tzinfo=timezone.utc))
        assert timeline["nextIndex"] == 1

    def test_progress_summary(self):
        """Plan completion skips blank points and the paid ratio is capped at one."""
        doc = documents.normalize_progress(
            {
                "workPlan": {
                    "points": [
                        {"text": "a", "done": True},
                        {"text": "b", "done": True},
                        {"text": "c"},
                        {"text": "  ", "done": True},
                    ]
                },
                "payments": {
                    "agreedPrice": "$1,000",
                    "entries": [{"amount": "$900"}, {"amount": "600"}, {"amount": "", "description": ""}],
                },
            }
        )
        summary = documents.progress_summary(doc, datetime(2026, 1, 1))
        assert summary["plan"] == {"done": 2, "total": 3, "percent": 67}
        assert len(summary["payments"]["entries"]) == 2
        assert summary["payments"]["paidTotal"] == 1500
        assert summary["payments"]["paidRatio"] == 1.0

    def test_summary_without_agreed_price(self):
        """No agreed price means a zero ratio."""
        summary = documents.progress_summary(documents.empty_progress(), datetime(2026, 1, 1))
        assert summary["payments"]["paidRatio"] == 0
        assert summary["plan"]["percent"] == 0
