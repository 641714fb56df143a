"""
Shared fixtures for markupguard tests.

Every test gets a fresh engine bound to the compiled-in policy and a fresh
process-wide service slot, so settings patched by one test never leak into
another.
"""

import pytest
from bs4 import BeautifulSoup

from markupguard import DEFAULT_POLICY, SanitizerEngine
from markupguard.engines import instances


@pytest.fixture
def engine():
    return SanitizerEngine(DEFAULT_POLICY)


@pytest.fixture
def clean(engine):
    """Sanitizes with the stdlib-backed html.parser tree builder."""

    def _clean(html):
        return engine.sanitize(html)

    return _clean


@pytest.fixture
def soup():
    """Parses markup the way the sanitizer's ambient builder does."""

    def _soup(html, features="html.parser"):
        return BeautifulSoup(html, features, multi_valued_attributes=None)

    return _soup


@pytest.fixture(autouse=True)
def reset_services(monkeypatch):
    monkeypatch.setattr(instances, "sanitizer_service", None)
