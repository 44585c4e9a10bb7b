import sys
from pathlib import Path

sys.path.append(str(Path(__file__).resolve().parent.parent))

from depgraph.config import DEFAULT_LINE_LIMIT, DEFAULT_VERSION, load_config


def test_defaults_without_config_file(tmp_path):
    config = load_config(tmp_path, environ={})

    assert config.root == tmp_path
    assert config.analyzer.executable is None
    assert config.analyzer.version == DEFAULT_VERSION
    assert config.analyzer.line_limit == DEFAULT_LINE_LIMIT
    assert config.analyzer.child_env() == {}
    assert config.install.skip_download is False


def test_config_file_is_found_in_parent_directory(tmp_path):
    (tmp_path / ".depgraph.toml").write_text(
        """
[analyzer]
executable = "bin/depgraph"
version = "0.4.1"
parallel = 32
terminate_timeout = 0.5

[install]
dir = "cache"
base_url = "https://mirror.example/depgraph/"
source_dir = "vendor/depgraph"
""",
        encoding="utf-8",
    )
    nested = tmp_path / "packages" / "web"
    nested.mkdir(parents=True)

    config = load_config(nested, environ={})

    assert config.root == tmp_path
    assert config.analyzer.executable == (tmp_path / "bin" / "depgraph").resolve()
    assert config.analyzer.version == "0.4.1"
    assert config.analyzer.child_env() == {"DEPGRAPH_PARALLEL": "32"}
    assert config.analyzer.terminate_timeout == 0.5
    assert config.install.dir == (tmp_path / "cache").resolve()
    assert config.install.base_url == "https://mirror.example/depgraph"
    assert config.install.source_dir == (tmp_path / "vendor" / "depgraph").resolve()


def test_environment_overrides_file(tmp_path):
    (tmp_path / ".depgraph.toml").write_text("[analyzer]\nparallel = 4\n", encoding="utf-8")
    env = {
        "DEPGRAPH_PARALLEL": "100",
        "DEPGRAPH_SKIP_DOWNLOAD": "1",
        "DEPGRAPH_EXECUTABLE": str(tmp_path / "depgraph"),
        "DEPGRAPH_INSTALL_DIR": str(tmp_path / "opt"),
    }

    config = load_config(tmp_path, environ=env)

    assert config.analyzer.parallel == 100
    assert config.install.skip_download is True
    assert config.analyzer.executable == (tmp_path / "depgraph").resolve()
    assert config.install.dir == (tmp_path / "opt").resolve()
