"""Tests for `provdetect catalog` CLI command."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING

from click.testing import CliRunner

from provdetect.cli import main

if TYPE_CHECKING:
    from pathlib import Path


class TestCatalogCommand:
    def test_builtin_json(self, isolated_env: Path) -> None:
        runner = CliRunner()
        result = runner.invoke(main, ["catalog", "--json"])
        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        assert data["version"] == 1
        assert [p["name"] for p in data["hosting"]][:2] == ["Vercel", "Cloudflare"]

    def test_category_filter_json(self, isolated_env: Path, catalog_file: Path) -> None:
        runner = CliRunner()
        result = runner.invoke(
            main, ["catalog", "--catalog", str(catalog_file), "--category", "dns", "--json"]
        )
        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        assert set(data) == {"version", "dns"}
        assert data["dns"][0]["rule"]["kind"] == "nsRegex"
        assert data["dns"][0]["rule"]["flags"] == "i"

    def test_table(self, isolated_env: Path, catalog_file: Path) -> None:
        runner = CliRunner()
        result = runner.invoke(main, ["catalog", "--catalog", str(catalog_file)])
        assert result.exit_code == 0, result.output
        assert "Vercel" in result.output
        assert "Fastmail" in result.output
        assert "Gandi" in result.output

    def test_unknown_category(self, isolated_env: Path) -> None:
        runner = CliRunner()
        result = runner.invoke(main, ["catalog", "--category", "cdn"])
        assert result.exit_code == 2

    def test_invalid_catalog(self, isolated_env: Path, bad_catalog_file: Path) -> None:
        runner = CliRunner()
        result = runner.invoke(main, ["catalog", "--catalog", str(bad_catalog_file)])
        assert result.exit_code == 2
        assert "Invalid provider catalog" in result.output

    def test_category_filter_json_without_version(self, isolated_env: Path) -> None:
        path = isolated_env / "unversioned.yml"
        path.write_text(
            "dns:\n"
            "  - name: Gandi LiveDNS\n"
            "    domain: gandi.net\n"
            "    rule: { kind: nsSuffix, suffix: gandi.net }\n",
            encoding="utf-8",
        )
        runner = CliRunner()
        result = runner.invoke(
            main, ["catalog", "--catalog", str(path), "--category", "dns", "--json"]
        )
        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        assert set(data) == {"dns"}
        assert data["dns"][0]["name"] == "Gandi LiveDNS"
