import pytest

from annealtsp.config import (
    AnnealConfig,
    ConfigError,
    _coerce_scalar,
    deep_set,
    load_experiment_spec,
    load_yaml,
    merge_dicts,
    save_yaml,
)


def test_merge_dicts_nested_and_copies():
    base = {"anneal": {"outer_loops": 100, "schedule": {"alpha": 0.95}}}
    out = merge_dicts(base, {"anneal": {"schedule": {"alpha": 0.9}}})
    assert out == {"anneal": {"outer_loops": 100, "schedule": {"alpha": 0.9}}}
    assert base["anneal"]["schedule"]["alpha"] == 0.95


def test_deep_set():
    cfg = {"anneal": {"seed": None}}
    deep_set(cfg, "anneal.schedule.alpha", 0.8)
    assert cfg["anneal"]["schedule"]["alpha"] == 0.8
    with pytest.raises(ConfigError):
        deep_set({"anneal": 3}, "anneal.seed", 1)


@pytest.mark.parametrize(
    "raw,expected",
    [("none", None), ("True", True), ("3", 3), ("0.5", 0.5), ("1e-2", 0.01), ("swap", "swap"), (7, 7)],
)
def test_coerce_scalar(raw, expected):
    assert _coerce_scalar(raw) == expected


def test_yaml_roundtrip_and_errors(tmp_path):
    path = tmp_path / "cfg.yaml"
    save_yaml({"anneal": {"moves": ["swap"]}}, str(path))
    assert load_yaml(str(path)) == {"anneal": {"moves": ["swap"]}}

    empty = tmp_path / "empty.yaml"
    empty.write_text("", encoding="utf-8")
    assert load_yaml(str(empty)) == {}

    bad = tmp_path / "bad.yaml"
    bad.write_text("- 1\n- 2\n", encoding="utf-8")
    with pytest.raises(ConfigError):
        load_yaml(str(bad))

    with pytest.raises(FileNotFoundError):
        load_yaml(str(tmp_path / "missing.yaml"))


def test_experiment_spec(tmp_path):
    path = tmp_path / "sweep.yaml"
    path.write_text("exp_name: a\nparam_path: anneal.schedule.alpha\nvalues: ['0.9', 0.8]\n", encoding="utf-8")
    spec = load_experiment_spec(str(path))
    assert spec.param_path == "anneal.schedule.alpha"
    assert spec.values == [0.9, 0.8]

    path.write_text("exp_name: a\nvalues: [1]\n", encoding="utf-8")
    with pytest.raises(ConfigError):
        load_experiment_spec(str(path))


def test_anneal_config_defaults():
    acfg = AnnealConfig.from_cfg({})
    assert acfg.outer_loops == 100
    assert acfg.inner_loops == 5000
    assert acfg.notification_cycle == 1000
    assert acfg.seed is None
    assert acfg.moves == ["reverse", "swap", "rotate"]
    assert acfg.schedule == {"kind": "geometric", "initial": 150.0, "floor": 0.01, "alpha": 0.95}


def test_anneal_config_from_base_yaml():
    acfg = AnnealConfig.from_cfg(load_yaml("configs/base.yaml"))
    assert acfg == AnnealConfig()


def test_anneal_config_partial_schedule_override():
    acfg = AnnealConfig.from_cfg({"anneal": {"seed": "4", "schedule": {"alpha": 0.5}}})
    assert acfg.seed == 4
    assert acfg.schedule["alpha"] == 0.5
    assert acfg.schedule["initial"] == 150.0


@pytest.mark.parametrize(
    "section",
    [
        {"outer_loops": 0},
        {"inner_loops": -3},
        {"notification_cycle": "x"},
        {"moves": []},
        {"moves": "swap"},
        {"schedule": [1, 2]},
        {"seed": "abc"},
    ],
)
def test_anneal_config_rejects(section):
    with pytest.raises(ConfigError):
        AnnealConfig.from_cfg({"anneal": section})


def test_anneal_section_must_be_mapping():
    with pytest.raises(ConfigError):
        AnnealConfig.from_cfg({"anneal": [1]})
