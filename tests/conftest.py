"""
Test Configuration
==================

Pytest configuration with fixtures shared by unit and integration tests.
Provides test settings, fake collaborators and an application client.
"""

import os

os.environ.setdefault("WEBCLIP_ENVIRONMENT", "testing")

from pathlib import Path
from typing import Generator

import pytest
from fastapi.testclient import TestClient

from webclip.api.main import create_app
from webclip.config.settings import Settings
from webclip.core.gateway import AdmissionGateway
from webclip.core.pipeline import ClipPipeline
from webclip.core.presets import PresetCatalog, presets_from_json
from webclip.models.params import ClipParams
from webclip.models.schemas import DecodedRequest

from tests.data.pages import ARTICLE_PAGE, ARTICLE_URL, PRESETS_JSON
from tests.utils.fakes import FakeFetcher, FakeRenderer


# Test settings override
class TestSettings(Settings):
    """Test-specific settings."""

    __test__ = False

    environment: str = "testing"
    debug: bool = True
    max_workers: int = 2
    disconnect_poll_interval: float = 0.01
    log_level: str = "DEBUG"


@pytest.fixture
def test_settings() -> TestSettings:
    """Test settings fixture."""
    return TestSettings()


@pytest.fixture
def fake_renderer() -> FakeRenderer:
    """Renderer returning a canned PDF."""
    return FakeRenderer()


@pytest.fixture
def fake_fetcher() -> FakeFetcher:
    """Fetcher serving the article fixture."""
    return FakeFetcher({ARTICLE_URL: ARTICLE_PAGE})


@pytest.fixture
def preset_catalog() -> PresetCatalog:
    """Catalog loaded from the sample preset definitions."""
    return presets_from_json(PRESETS_JSON)


@pytest.fixture
def pipeline(
    fake_renderer: FakeRenderer, fake_fetcher: FakeFetcher, preset_catalog: PresetCatalog
) -> ClipPipeline:
    """Pipeline wired to fakes with two gateway slots."""
    return ClipPipeline(
        renderer=fake_renderer,
        gateway=AdmissionGateway(2),
        fetcher=fake_fetcher,  # type: ignore[arg-type]
        presets=preset_catalog,
    )


@pytest.fixture
def make_request():
    """Factory for decoded requests."""

    def _make(url: str = ARTICLE_URL, presets=None, **fields) -> DecodedRequest:
        return DecodedRequest(url=url, presets=presets or [], params=ClipParams(**fields))

    return _make


@pytest.fixture
def client(
    test_settings: TestSettings,
    fake_renderer: FakeRenderer,
    fake_fetcher: FakeFetcher,
    preset_catalog: PresetCatalog,
) -> Generator[TestClient, None, None]:
    """FastAPI test client running the application lifespan."""
    app = create_app(
        settings=test_settings,
        renderer=fake_renderer,
        fetcher=fake_fetcher,  # type: ignore[arg-type]
        presets=preset_catalog,
    )
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def dump_dir(tmp_path: Path) -> Path:
    """Directory for diagnostic dumps."""
    return tmp_path / "dumps"
