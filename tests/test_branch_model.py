"""Tests for gsv_core.branch_model — parsing ``gs ll -a --json`` output."""

from gsv_core.branch_model import (
    BranchLink,
    ChangeRef,
    CommitRecord,
    PushStatus,
    parse_branch,
    parse_branches,
)
from tests.conftest import json_lines


# ---------------------------------------------------------------------------
# parse_branches
# ---------------------------------------------------------------------------

class TestParseBranches:
    def test_skips_malformed_line(self):
        """An undecodable line is dropped without losing the valid one."""
        records = parse_branches('{\n{"name":"valid"}\n')
        assert [r.name for r in records] == ["valid"]

    def test_skips_record_without_name(self):
        out = json_lines({"current": True}, {"name": ""}, {"name": "ok"})
        assert [r.name for r in parse_branches(out)] == ["ok"]

    def test_skips_non_object_lines(self):
        out = '["a", "b"]\n42\n"name"\n{"name": "main"}\n'
        assert [r.name for r in parse_branches(out)] == ["main"]

    def test_blank_lines_ignored(self):
        out = '\n\n{"name": "main"}\n   \n{"name": "feature"}\n'
        assert [r.name for r in parse_branches(out)] == ["main", "feature"]

    def test_empty_output(self):
        assert parse_branches("") == []

    def test_keeps_input_order_and_duplicates(self):
        out = json_lines({"name": "b"}, {"name": "a"}, {"name": "b", "current": True})
        records = parse_branches(out)
        assert [r.name for r in records] == ["b", "a", "b"]
        assert records[2].current is True


# ---------------------------------------------------------------------------
# parse_branch
# ---------------------------------------------------------------------------

class TestParseBranch:
    def test_full_record(self):
        raw = {
            "name": "feature",
            "current": True,
            "down": {"name": "main", "needsRestack": True},
            "ups": [{"name": "feature-docs"}, {"name": "feature-ui", "needsRestack": True}],
            "change": {"id": "#12", "url": "https://example.com/pr/12", "status": "open"},
            "commits": [{"sha": "abcd1234ef567890", "subject": "Add feature"}],
            "push": {"ahead": 2, "behind": 1, "needsPush": True},
        }
        record = parse_branch(raw)
        assert record.name == "feature"
        assert record.current is True
        assert record.down == BranchLink("main", needs_restack=True)
        assert record.ups == (BranchLink("feature-docs"), BranchLink("feature-ui", needs_restack=True))
        assert record.change == ChangeRef("#12", "https://example.com/pr/12", "open")
        assert record.commits == (CommitRecord("abcd1234ef567890", "Add feature"),)
        assert record.push == PushStatus(ahead=2, behind=1, needs_push=True)

    def test_minimal_record_defaults(self):
        record = parse_branch({"name": "main"})
        assert record.current is False
        assert record.down is None
        assert record.ups == ()
        assert record.change is None
        assert record.commits is None
        assert record.push is None

    def test_current_must_be_true_bool(self):
        assert parse_branch({"name": "x", "current": "yes"}).current is False
        assert parse_branch({"name": "x", "current": 1}).current is False

    def test_bad_links_dropped(self):
        record = parse_branch({"name": "x", "down": "main", "ups": [{"name": "ok"}, "bad", {}, None]})
        assert record.down is None
        assert record.ups == (BranchLink("ok"),)

    def test_ups_not_a_list(self):
        assert parse_branch({"name": "x", "ups": {"name": "y"}}).ups == ()

    def test_numeric_change_id(self):
        record = parse_branch({"name": "x", "change": {"id": 42}})
        assert record.change == ChangeRef("42")

    def test_unknown_change_status_dropped(self):
        record = parse_branch({"name": "x", "change": {"id": "#1", "status": "draft"}})
        assert record.change.status is None

    def test_change_without_id_dropped(self):
        assert parse_branch({"name": "x", "change": {"url": "https://x"}}).change is None

    def test_empty_commit_list_kept_distinct_from_missing(self):
        assert parse_branch({"name": "x", "commits": []}).commits == ()
        assert parse_branch({"name": "x"}).commits is None

    def test_commit_without_sha_dropped(self):
        record = parse_branch({"name": "x", "commits": [{"subject": "no sha"}, {"sha": "abc"}]})
        assert record.commits == (CommitRecord("abc", ""),)

    def test_negative_push_counts_clamped(self):
        record = parse_branch({"name": "x", "push": {"ahead": -3, "behind": "2"}})
        assert record.push == PushStatus(ahead=0, behind=0, needs_push=False)

    def test_not_a_dict(self):
        assert parse_branch(["name"]) is None
        assert parse_branch(None) is None
