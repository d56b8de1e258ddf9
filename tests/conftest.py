"""
Pytest configuration and shared fixtures.
"""

import json
from io import BytesIO
from typing import Any

import pytest
from django.core.cache import cache
from PIL import Image

from pages.access import OPERATOR_SESSION
from pages.access import hash_password
from pages.models import MetaPage
from pages.models import ProgressPage
from pages.models import Proposal
from tests.sample_docs import client_doc
from tests.sample_docs import proposal_doc


@pytest.fixture(autouse=True)
def _clear_cache():
    """Rate limit counters live in the cache; start every test clean."""
    cache.clear()
    yield
    cache.clear()


@pytest.fixture
def operator_client(client):
    """A test client carrying a valid operator session cookie."""
    client.cookies[OPERATOR_SESSION.cookie_name] = OPERATOR_SESSION.issue("operator")
    return client


@pytest.fixture
def upload_dir(tmp_path, settings):
    settings.PAGES_UPLOAD_DIR = tmp_path / "uploads"
    settings.PAGES_UPLOAD_PUBLIC_BASE = "/uploads"
    return settings.PAGES_UPLOAD_DIR


@pytest.fixture
def png_bytes() -> bytes:
    buf = BytesIO()
    Image.new("RGB", (4, 4), "orange").save(buf, format="PNG")
    return buf.getvalue()


@pytest.fixture
def make_proposal(db):
    def _make(slug: str = "growth", *, status: str = Proposal.STATUS_PUBLISHED, en: Any = None, ar: Any = None, **fields):
        return Proposal.objects.create(
            slug=slug,
            status=status,
            data_en=json.dumps(proposal_doc() if en is None else en),
            data_ar=json.dumps(ar) if ar is not None else None,
            **fields,
        )

    return _make


@pytest.fixture
def make_gated_page(db):
    def _make(model=ProgressPage, slug: str = "acme", *, password: str = "open-sesame", status: str = "PUBLISHED", en: Any = None):
        return model.objects.create(
            slug=slug,
            status=status,
            data_en=json.dumps(client_doc() if en is None else en),
            access_password_hash=hash_password(password) if password else None,
        )

    return _make


@pytest.fixture
def make_meta_page(make_gated_page):
    def _make(slug: str = "acme-ads", **kwargs):
        return make_gated_page(MetaPage, slug, **kwargs)

    return _make
