#!/usr/bin/env python3
"""
Tests for the command-line runner: exit codes, JSON output and summaries.
"""
import json
from pathlib import Path
import sys

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from sellerwatch import main as runner
from sellerwatch.core.chart_service import ChartStatus, EntityChart
from sellerwatch.shared.models import FetchResult, Page


CONFIG = """
client:
  api:
    base_url: "https://api.example.com"
  entities: ["seller/one"]
"""


class TestMain:

    def test_missing_config_exits_2(self, tmp_path: Path):
        assert runner.main(["--config", str(tmp_path / "nope.yaml")]) == 2

    def test_inverted_dates_exit_2(self, tmp_path: Path):
        cfg = tmp_path / "cfg.yaml"
        cfg.write_text(CONFIG, encoding="utf-8")
        code = runner.main(["--config", str(cfg), "--from", "2025-03-01", "--to", "2025-01-01"])
        assert code == 2

    def test_writes_chart_files(self, tmp_path: Path, monkeypatch, capsys):
        cfg = tmp_path / "cfg.yaml"
        cfg.write_text(CONFIG, encoding="utf-8")
        out = tmp_path / "charts"

        empty = FetchResult.ok(Page(records=[], has_more=False))
        monkeypatch.setattr(runner.MarketplaceClient, "fetch_listings_page", lambda self, *a: empty)
        monkeypatch.setattr(runner.MarketplaceClient, "fetch_payouts_page", lambda self, *a: empty)

        code = runner.main(["--config", str(cfg), "--from", "2025-01-01", "--to", "2025-01-31",
                            "--output-dir", str(out), "--theme", "ebay"])

        assert code == 0
        payload = json.loads((out / "chart_seller_one.json").read_text(encoding="utf-8"))
        assert payload['entity'] == "seller/one"
        assert payload['status'] == "empty"
        assert payload['theme'] == "ebay"
        assert "seller/one: status=empty" in capsys.readouterr().out


class TestSummarize:

    def test_summary_lists_errors(self):
        chart = EntityChart(entity="s1", status=ChartStatus.PARTIAL, theme="default",
                            listing_total=1234.5, listing_count=2,
                            errors={'payouts': "HTTP 500"})
        line = runner.summarize(chart)
        assert line.startswith("s1: status=partial")
        assert "$1,234.50" in line
        assert "payouts: HTTP 500" in line
