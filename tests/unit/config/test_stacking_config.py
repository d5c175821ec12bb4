"""Tests for StackingConfig."""

import pytest

from genstack.config import StackingConfig
from genstack.exceptions import ConfigurationError


class TestStackingConfig:
    """Test suite for StackingConfig."""

    def test_defaults(self):
        config = StackingConfig()

        assert config.n_jobs is None
        assert config.backend == "loky"
        assert config.verbose == 1
        assert config.check_kinds is True
        assert config.keep_meta_dataset is True
        assert not config.parallel

    def test_parallel(self):
        assert StackingConfig(n_jobs=2).parallel
        assert StackingConfig(n_jobs=-1).parallel
        assert not StackingConfig(n_jobs=1).parallel

    @pytest.mark.parametrize("kwargs", [
        {"n_jobs": 0},
        {"n_jobs": 1.5},
        {"n_jobs": True},
        {"backend": "dask"},
        {"verbose": -1},
    ])
    def test_invalid_values(self, kwargs):
        with pytest.raises(ConfigurationError):
            StackingConfig(**kwargs)

    def test_configuration_error_is_value_error(self):
        with pytest.raises(ValueError):
            StackingConfig(n_jobs=0)

    def test_round_trip_dict(self):
        config = StackingConfig(n_jobs=4, backend="threading", verbose=2)

        assert StackingConfig.from_dict(config.to_dict()) == config
        assert StackingConfig.from_dict(None) == StackingConfig()

    def test_unknown_keys(self):
        with pytest.raises(ConfigurationError, match="n_folds"):
            StackingConfig.from_dict({"n_folds": 5})


class TestStackingConfigYaml:
    """Test suite for loading StackingConfig from YAML."""

    def test_top_level_settings(self, tmp_path):
        path = tmp_path / "stacking.yaml"
        path.write_text("n_jobs: 2\nbackend: threading\n", encoding="utf-8")

        config = StackingConfig.from_yaml(path)

        assert config.n_jobs == 2
        assert config.backend == "threading"

    def test_nested_settings(self, tmp_path):
        path = tmp_path / "project.yaml"
        path.write_text(
            "stacking:\n  verbose: 0\n  keep_meta_dataset: false\nother: 1\n",
            encoding="utf-8",
        )

        config = StackingConfig.from_yaml(str(path))

        assert config.verbose == 0
        assert config.keep_meta_dataset is False

    def test_empty_file(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("", encoding="utf-8")

        assert StackingConfig.from_yaml(path) == StackingConfig()

    def test_not_a_mapping(self, tmp_path):
        path = tmp_path / "list.yaml"
        path.write_text("- 1\n- 2\n", encoding="utf-8")

        with pytest.raises(ConfigurationError, match="expected a mapping"):
            StackingConfig.from_yaml(path)
