#!filepath: tests/config/test_app_config.py
import pytest

from containerd_metrics.config.app_config import AppConfig, default_config_path
from containerd_metrics.utils.errors import UserInputError


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    # setenv 先登记原值，load_dotenv 写入的变量在 teardown 时一并清除
    for name in ("CONTAINERD_SOCKET", "CONTAINERD_NAMESPACE", "CTR_BINARY"):
        monkeypatch.setenv(name, "unset")
        monkeypatch.delenv(name)


def test_bundled_config_loads():
    cfg = AppConfig.load(env_file=None)

    assert cfg.ingest.socket == "/run/containerd/containerd.sock"
    assert cfg.ingest.namespace == "k8s.io"
    assert cfg.correlation.pending_ttl == 3600
    assert cfg.correlation.clock == "processing"
    assert cfg.report.log is True
    assert cfg.log.dir is None


def test_default_config_path_exists():
    assert default_config_path().endswith("base.yml")


def test_partial_yaml_uses_defaults(tmp_path):
    p = tmp_path / "cfg.yml"
    p.write_text("correlation:\n  completed_ttl: null\n", encoding="utf-8")

    cfg = AppConfig.load(str(p), env_file=None)

    assert cfg.correlation.completed_ttl is None
    assert cfg.correlation.pending_ttl == 3600
    assert cfg.ingest.ctr_binary == "ctr"


def test_env_overrides(tmp_path, monkeypatch):
    monkeypatch.setenv("CONTAINERD_SOCKET", "/tmp/env.sock")
    monkeypatch.setenv("CTR_BINARY", "/opt/bin/ctr")

    cfg = AppConfig.load(env_file=None)

    assert cfg.ingest.socket == "/tmp/env.sock"
    assert cfg.ingest.ctr_binary == "/opt/bin/ctr"


def test_dotenv_file(tmp_path, monkeypatch):
    env = tmp_path / ".env"
    env.write_text("CONTAINERD_NAMESPACE=moby\n", encoding="utf-8")

    cfg = AppConfig.load(env_file=str(env))

    assert cfg.ingest.namespace == "moby"


def test_missing_file(tmp_path):
    with pytest.raises(UserInputError, match="not found"):
        AppConfig.load(str(tmp_path / "nope.yml"), env_file=None)


def test_invalid_values(tmp_path):
    p = tmp_path / "cfg.yml"
    p.write_text("correlation:\n  pending_ttl: -1\n", encoding="utf-8")

    with pytest.raises(UserInputError, match="Invalid config"):
        AppConfig.load(str(p), env_file=None)


def test_not_a_mapping(tmp_path):
    p = tmp_path / "cfg.yml"
    p.write_text("- a\n- b\n", encoding="utf-8")

    with pytest.raises(UserInputError):
        AppConfig.load(str(p), env_file=None)
