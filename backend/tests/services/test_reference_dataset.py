"""Tests for app.services.solar_reference dataset loading across processes."""

from __future__ import annotations

import pytest

from app.config import settings
from app.services.energy_pipeline import run_solar_generation_analysis
from app.services.solar_reference import clear_reference_cache, get_reference_library


@pytest.fixture
def dataset_path(tmp_path, monkeypatch):
    path = tmp_path / "solar_profiles.json"
    monkeypatch.setattr(settings, "solar_profiles_path", str(path))
    clear_reference_cache()
    yield path
    clear_reference_cache()


class TestGetReferenceLibrary:
    def test_missing_dataset_is_empty(self, dataset_path):
        assert get_reference_library().locations() == []

    def test_cached_while_unchanged(self, dataset_path, reference_library):
        reference_library.to_json(dataset_path)
        assert get_reference_library() is get_reference_library()

    def test_rewritten_dataset_is_reloaded(self, dataset_path, reference_library):
        assert get_reference_library().locations() == []

        # Written by another worker: this process never clears its cache.
        reference_library.to_json(dataset_path)
        assert get_reference_library().locations() == reference_library.locations()

    def test_explicit_path(self, tmp_path, reference_library):
        path = tmp_path / "other.json"
        reference_library.to_json(path)
        assert get_reference_library(str(path)).locations() == reference_library.locations()


class TestSolarStageSeesNewDataset:
    def test_generation_after_dataset_built(
        self, db, project, solar_setup, dataset_path, reference_library
    ):
        run_solar_generation_analysis(db, project.id)
        db.refresh(solar_setup)
        assert solar_setup.generation_profile is None

        reference_library.to_json(dataset_path)
        run_solar_generation_analysis(db, project.id)
        db.refresh(solar_setup)
        assert solar_setup.generation_profile is not None
