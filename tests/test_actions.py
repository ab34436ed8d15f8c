"""Tests for applying and reporting on plans."""

import csv
import json
import logging
import os

from pixeldedup.common.actions import apply_plan, generate_report, group_entries
from pixeldedup.common.models import Action, FileMeta, PlanEntry


def make_plan(tmp_path):
    keeper = tmp_path / "src" / "keep.jpg"
    dupe = tmp_path / "src" / "dupe.jpg"
    other = tmp_path / "src" / "nested" / "dupe.jpg"
    for path, content in ((keeper, b"keeper"), (dupe, b"dupe-one"), (other, b"dupe-two")):
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(content)
    entries = [
        PlanEntry("c1", Action.KEEP, str(keeper), "keeper"),
        PlanEntry("c1", Action.DELETE, str(dupe), "dupe"),
        PlanEntry("c1", Action.DELETE, str(other), "dupe"),
    ]
    return entries, keeper, dupe, other


class TestApplyPlan:
    def test_moves_only_delete_entries(self, tmp_path):
        entries, keeper, dupe, other = make_plan(tmp_path)
        quarantine = tmp_path / "quarantine"
        summary = apply_plan(entries, quarantine)

        assert keeper.exists()
        assert not dupe.exists() and not other.exists()
        assert sorted(p.name for p in quarantine.iterdir()) == ["dupe.jpg", "dupe_1.jpg"]
        assert len(summary.moved) == 2
        assert summary.freed_bytes == len(b"dupe-one") + len(b"dupe-two")

    def test_missing_files_are_counted(self, tmp_path):
        entries, _, dupe, _ = make_plan(tmp_path)
        dupe.unlink()
        summary = apply_plan(entries, tmp_path / "q")
        assert summary.missing == 1
        assert len(summary.moved) == 1

    def test_dry_run_moves_nothing(self, tmp_path):
        entries, keeper, dupe, other = make_plan(tmp_path)
        summary = apply_plan(entries, tmp_path / "q", dry_run=True)
        assert dupe.exists() and other.exists()
        assert not (tmp_path / "q").exists()
        assert summary.moved == []

    def test_dry_run_reports_distinct_destinations(self, tmp_path, caplog):
        entries, _, _, _ = make_plan(tmp_path)
        quarantine = tmp_path / "q"
        with caplog.at_level(logging.INFO, logger="pixeldedup"):
            apply_plan(entries, quarantine, dry_run=True)
        targets = [r.getMessage().split(" -> ")[1] for r in caplog.records
                   if r.getMessage().startswith("Would move")]
        assert targets == [str(quarantine / "dupe.jpg"), str(quarantine / "dupe_1.jpg")]

    def test_hardlink_replaces_original(self, tmp_path):
        entries, keeper, dupe, _ = make_plan(tmp_path)
        summary = apply_plan(entries, tmp_path / "q", hardlink=True)
        assert summary.linked == 2
        assert dupe.exists()
        assert os.path.samefile(dupe, keeper)
        assert (tmp_path / "q" / "dupe.jpg").read_bytes() == b"dupe-one"


class TestReports:
    def entries(self):
        return [
            PlanEntry("c1", Action.KEEP, "/a.jpg", "keeper(...)", FileMeta(4, 100, 1.0)),
            PlanEntry("c1", Action.DELETE, "/b.jpg", "dupe(...)", FileMeta(1, 40, 1.0)),
            PlanEntry("c2", Action.KEEP, "/c.jpg", "", FileMeta.unavailable()),
            PlanEntry("c2", Action.DELETE, "/d.jpg", "", FileMeta.unavailable()),
        ]

    def test_group_entries(self):
        groups = group_entries(self.entries())
        assert list(groups) == ["c1", "c2"]
        assert [e.identifier for e in groups["c2"]] == ["/c.jpg", "/d.jpg"]

    def test_text_report(self, tmp_path):
        path = generate_report(self.entries(), 'text', tmp_path / "report.txt")
        text = path.read_text()
        assert "Total duplicate groups: 2" in text
        assert "Total files to delete: 2" in text
        assert "KEEP   /a.jpg" in text
        assert "DELETE /b.jpg" in text
        # Plain text when written to a file
        assert "\x1b[" not in text

    def test_json_report(self, tmp_path):
        path = generate_report(self.entries(), 'json', tmp_path / "report.json")
        data = json.loads(path.read_text())
        assert data['total_groups'] == 2
        assert data['total_duplicates'] == 2
        assert data['reclaimable_bytes'] == 40
        assert data['duplicate_groups'][1]['entries'][0]['modified_time'] is None

    def test_csv_report_to_stdout(self, capsys):
        assert generate_report(self.entries(), 'csv') is None
        lines = capsys.readouterr().out.splitlines()
        assert lines[0] == "group_id,action,file_path,reason"
        assert lines[1] == "c1,KEEP,/a.jpg,keeper(...)"

    def test_csv_report_quotes_awkward_paths(self, tmp_path):
        entries = [
            PlanEntry("c1", Action.KEEP, '/p/say "hi", again.jpg', "keeper(x)"),
            PlanEntry("c1", Action.DELETE, "/p/plain.jpg", 'dupe("y")'),
        ]
        path = generate_report(entries, 'csv', tmp_path / "report.csv")
        with open(path, newline='', encoding='utf-8') as f:
            rows = list(csv.reader(f))
        assert rows == [
            ["group_id", "action", "file_path", "reason"],
            ["c1", "KEEP", '/p/say "hi", again.jpg', "keeper(x)"],
            ["c1", "DELETE", "/p/plain.jpg", 'dupe("y")'],
        ]
