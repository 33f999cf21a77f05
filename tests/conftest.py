"""Shared test fixtures for provdetect."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from provdetect.config import ENV_CACHE_TTL, ENV_CATALOG_PATH

if TYPE_CHECKING:
    from pathlib import Path


SMALL_CATALOG_YAML = (
    "version: 3\n"
    "hosting:\n"
    "  - name: Vercel\n"
    "    domain: vercel.com\n"
    "    rule:\n"
    "      any:\n"
    "        - { kind: headerEquals, name: server, value: vercel }\n"
    "        - { kind: headerPresent, name: x-vercel-id }\n"
    "email:\n"
    "  - name: Fastmail\n"
    "    domain: fastmail.com\n"
    "    rule: { kind: mxSuffix, suffix: messagingengine.com }\n"
    "dns:\n"
    "  - name: Amazon Route 53\n"
    "    domain: aws.amazon.com\n"
    "    rule:\n"
    "      kind: nsRegex\n"
    "      pattern: '^ns-\\d+\\.awsdns-\\d+\\.(com|net|org|co\\.uk)$'\n"
    "      flags: i\n"
    "registrar:\n"
    "  - name: Gandi\n"
    "    domain: gandi.net\n"
    "    rule: { kind: registrarIncludes, substr: gandi }\n"
    "ca:\n"
    "  - name: ZeroSSL\n"
    "    domain: zerossl.com\n"
    "    rule: { kind: issuerIncludes, substr: zerossl }\n"
)

BAD_CATALOG_YAML = (
    "hosting:\n"
    "  - name: Nested Bad Regex\n"
    "    domain: example.com\n"
    "    rule:\n"
    "      all:\n"
    "        - { kind: headerPresent, name: x-test }\n"
    "        - { kind: mxRegex, pattern: '(unclosed' }\n"
    "dns:\n"
    "  - name: ''\n"
    "    domain: example.net\n"
    "    rule: { kind: nsRegex, pattern: '**invalid**' }\n"
)


@pytest.fixture()
def catalog_file(tmp_path: Path) -> Path:
    """A small, valid YAML catalog with one provider per category."""
    path = tmp_path / "providers.yml"
    path.write_text(SMALL_CATALOG_YAML, encoding="utf-8")
    return path


@pytest.fixture()
def bad_catalog_file(tmp_path: Path) -> Path:
    """A YAML catalog with three independent problems."""
    path = tmp_path / "broken.yml"
    path.write_text(BAD_CATALOG_YAML, encoding="utf-8")
    return path


@pytest.fixture()
def isolated_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Run from an empty directory with no provdetect environment overrides."""
    workdir = tmp_path / "work"
    workdir.mkdir()
    monkeypatch.chdir(workdir)
    monkeypatch.delenv(ENV_CATALOG_PATH, raising=False)
    monkeypatch.delenv(ENV_CACHE_TTL, raising=False)
    return workdir
