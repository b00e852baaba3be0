import json
import subprocess
import sys
from pathlib import Path

from jobs.build_site import main

REPO_ROOT = Path(__file__).resolve().parents[1]


def test_build_site_rejects_missing_feeds_file(tmp_path):
    result = subprocess.run(
        [sys.executable, "-m", "jobs.build_site", "--feeds", str(tmp_path / "missing.json"), "--out", str(tmp_path / "dist")],
        capture_output=True,
        cwd=REPO_ROOT,
    )
    assert result.returncode != 0


def test_build_site_rejects_invalid_config(tmp_path):
    rc = main(["--feeds", str(REPO_ROOT / "config" / "feeds.json"), "--items-per-page", "0", "--out", str(tmp_path)])
    assert rc == 1


def test_build_site_fixtures_mode(tmp_path, capsys):
    out = tmp_path / "dist"
    rc = main([
        "--feeds", str(REPO_ROOT / "config" / "feeds.json"),
        "--mode", "fixtures",
        "--fixtures-dir", str(REPO_ROOT / "fixtures"),
        "--out", str(out),
        "--items-per-page", "2",
    ])

    assert rc == 0
    assert "OK feeds=3 ok=2 failed=1 items=3 pages=2" in capsys.readouterr().out

    metadata = json.loads((out / "data" / "metadata.json").read_text(encoding="utf-8"))
    assert metadata["itemsPerPage"] == 2
    assert (out / "data" / "page-2.json").exists()
    assert (out / "feeds" / "manifest.json").exists()


def test_build_site_no_feed_pages(tmp_path):
    out = tmp_path / "dist"
    rc = main([
        "--feeds", str(REPO_ROOT / "config" / "feeds.json"),
        "--mode", "fixtures",
        "--fixtures-dir", str(REPO_ROOT / "fixtures"),
        "--out", str(out),
        "--no-feed-pages",
    ])

    assert rc == 0
    assert (out / "data" / "metadata.json").exists()
    assert not (out / "feeds").exists()
