"""Tests for the command-line interface."""

import shutil

import pytest

from pixeldedup.common.formats import read_clusters, read_index, read_plan
from pixeldedup.common.models import Action
from pixeldedup.dedup_main import Exit, main


@pytest.fixture
def library(tmp_path, make_image):
    directory = tmp_path / "library"
    large = make_image("large.png", size=(200, 200), directory=directory)
    shutil.copy(large, directory / "large-copy.png")
    make_image("unrelated.png", size=(200, 200), vertical=True, directory=directory)
    (directory / "notes.txt").write_text("ignored")
    return directory


def test_full_pipeline(tmp_path, library, capsys):
    index = tmp_path / "index.csv"
    clusters = tmp_path / "clusters.csv"
    plan = tmp_path / "plan.csv"
    quarantine = tmp_path / "quarantine"

    assert main(['hash', str(library), '--out', str(index), '--workers', '1', '--no-cache']) == Exit.OK
    assert "Hashed 3 of 3 images with phash" in capsys.readouterr().out
    assert len(read_index(index)) == 3

    assert main(['cluster', str(index), '--radius', '0', '--out', str(clusters)]) == Exit.OK
    groups = read_clusters(clusters)
    assert len(groups) == 1
    resolved = library.resolve()
    assert sorted(groups[0].members) == sorted([str(resolved / "large.png"), str(resolved / "large-copy.png")])

    assert main(['plan', str(clusters), '--out', str(plan)]) == Exit.OK
    entries = read_plan(plan)
    assert sorted(e.action for e in entries) == [Action.DELETE, Action.KEEP]

    assert main(['apply', str(plan), '--quarantine', str(quarantine)]) == Exit.OK
    assert len(list(quarantine.iterdir())) == 1
    assert (library / "unrelated.png").exists()


def test_include_singletons(tmp_path, library):
    index = tmp_path / "index.csv"
    clusters = tmp_path / "clusters.csv"
    main(['hash', str(library), '--out', str(index), '--workers', '1', '--no-cache'])
    main(['cluster', str(index), '--radius', '0', '--include-singletons', '--out', str(clusters)])
    assert len(read_clusters(clusters)) == 2


def test_report_command(tmp_path, capsys):
    plan = tmp_path / "plan.csv"
    plan.write_text("clusterId,action,path,reason\nc1,KEEP,/x.jpg,keeper\nc1,DELETE,/y.jpg,dupe\n")
    out = tmp_path / "report.json"
    assert main(['report', str(plan), '--output-format', 'json', '--output-file', str(out)]) == Exit.OK
    assert '"total_duplicates": 1' in out.read_text()


def test_missing_index_is_usage_error(tmp_path):
    assert main(['cluster', str(tmp_path / "missing.csv")]) == Exit.USAGE


def test_empty_directory_is_usage_error(tmp_path):
    (tmp_path / "empty").mkdir()
    assert main(['hash', str(tmp_path / "empty"), '--no-cache']) == Exit.USAGE


@pytest.mark.parametrize("radius", ['-1', '65', 'ten'])
def test_radius_out_of_range(tmp_path, radius):
    with pytest.raises(SystemExit) as excinfo:
        main(['cluster', str(tmp_path / "index.csv"), '--radius', radius])
    assert excinfo.value.code == 2


def test_unknown_algorithm_rejected(tmp_path):
    with pytest.raises(SystemExit) as excinfo:
        main(['hash', str(tmp_path), '--algo', 'whash'])
    assert excinfo.value.code == 2


def test_clear_cache_applies_without_cache(tmp_path, library):
    cache_dir = tmp_path / "cache"
    stale = cache_dir / "fingerprints-phash.json"
    cache_dir.mkdir()
    stale.write_text("{}")

    assert main(['hash', str(library), '--out', str(tmp_path / "index.csv"), '--workers', '1',
                 '--no-cache', '--clear-cache', '--cache-dir', str(cache_dir)]) == Exit.OK
    assert not stale.exists()
