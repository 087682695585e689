from pathlib import Path

import pytest
import yaml

from churn_tree.config import Config
from churn_tree.exceptions import ConfigurationError

DEFAULT_CONFIG = Path(__file__).resolve().parents[3] / "config" / "default.yaml"


def test_config_from_yaml_reads_all_sections(tmp_path, config_dict):
    path = tmp_path / "config.yaml"
    path.write_text(yaml.safe_dump(config_dict))

    cfg = Config.from_yaml(str(path))

    assert cfg.data["label_column"] == "Cancelled"
    assert cfg.grid["cp"] == [0.01, 0.001]
    assert cfg.split["train_fraction"] == 0.7
    assert cfg.seed == 42
    assert cfg.selection == {}


def test_shipped_default_config_is_valid():
    cfg = Config.from_yaml(str(DEFAULT_CONFIG))
    assert cfg.grid["strategies"] == ["stopping", "pruning"]
    assert cfg.selection["policy"] == "lexicographic"


def test_config_missing_grid_key_is_rejected(config_dict):
    del config_dict["grid"]["maxdepth"]
    with pytest.raises(ConfigurationError, match="maxdepth"):
        Config.from_dict(config_dict)


def test_config_unknown_section_is_rejected(config_dict):
    config_dict["model"] = {"params": {}}
    with pytest.raises(ConfigurationError):
        Config.from_dict(config_dict)


@pytest.mark.parametrize("fraction", [0.0, 1.0, 1.5, -0.2])
def test_config_train_fraction_outside_unit_interval(config_dict, fraction):
    config_dict["split"]["train_fraction"] = fraction
    with pytest.raises(ConfigurationError):
        Config.from_dict(config_dict)


def test_config_rejects_non_positive_k(config_dict):
    config_dict["balancing"]["k_neighbors"] = 0
    with pytest.raises(ConfigurationError):
        Config.from_dict(config_dict)


def test_config_rejects_non_integer_seed(config_dict):
    config_dict["seed"] = "42"
    with pytest.raises(ConfigurationError):
        Config.from_dict(config_dict)


def test_config_rejects_empty_grid_list(config_dict):
    config_dict["grid"]["cp"] = []
    with pytest.raises(ConfigurationError):
        Config.from_dict(config_dict)


def test_config_rejects_unknown_strategy(config_dict):
    config_dict["grid"]["strategies"] = ["stopping", "bagging"]
    with pytest.raises(ConfigurationError, match="bagging"):
        Config.from_dict(config_dict)


def test_config_rejects_unknown_selection_policy(config_dict):
    config_dict["selection"] = {"policy": "best_auc"}
    with pytest.raises(ConfigurationError):
        Config.from_dict(config_dict)


def test_config_does_not_validate_grid_values(config_dict):
    # invalid tuples are rejected per grid point, not at load time
    config_dict["grid"]["minsplit"] = [0, 10]
    cfg = Config.from_dict(config_dict)
    assert cfg.grid["minsplit"] == [0, 10]
