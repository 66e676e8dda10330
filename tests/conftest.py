# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Shared pytest fixtures for canarypkg tests.

The real fpm and package_cloud are never called. Two small Python scripts
stand in for them: they record every argv they receive (one JSON line
per call) and can be told to fail through environment variables, which
the child inherits from the test process.

  FAKE_FPM_FAIL       comma-separated substrings; fpm exits 1 when the -p
                      output path contains any of them
  FAKE_FPM_NO_OUTPUT  same matching, but exit 0 without writing the file
  FAKE_PUSH_FAIL      comma-separated substrings of the repo path that
                      make the push exit 1
"""

import json
import sys
import textwrap
from pathlib import Path
from typing import Callable

import pytest

from canarypkg.config.schema import PackagingConfig, PublishConfig

_FAKE_FPM = textwrap.dedent("""\
    import json
    import os
    import sys
    from pathlib import Path

    args = sys.argv[1:]
    with open(os.environ["FAKE_TOOL_LOG"], "a", encoding="utf-8") as log:
        log.write(json.dumps({"tool": "fpm", "argv": args}) + "\\n")

    output = args[args.index("-p") + 1]

    def matches(var):
        return any(s and s in output for s in os.environ.get(var, "").split(","))

    if matches("FAKE_FPM_FAIL"):
        sys.exit(1)
    if matches("FAKE_FPM_NO_OUTPUT"):
        sys.exit(0)

    path = Path(output)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(("package " + output).encode("utf-8"))
""")

_FAKE_PUSH = textwrap.dedent("""\
    import json
    import os
    import sys

    args = sys.argv[1:]
    with open(os.environ["FAKE_TOOL_LOG"], "a", encoding="utf-8") as log:
        log.write(json.dumps({"tool": "package_cloud", "argv": args}) + "\\n")

    repo_path = args[1]
    if any(s and s in repo_path for s in os.environ.get("FAKE_PUSH_FAIL", "").split(",")):
        sys.exit(1)
""")


@pytest.fixture()
def project_root(tmp_path: Path) -> Path:
    root = tmp_path / "project"
    root.mkdir()
    return root


@pytest.fixture()
def tool_log(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Where the fake tools append their invocations."""
    log = tmp_path / "tool_calls.jsonl"
    monkeypatch.setenv("FAKE_TOOL_LOG", str(log))
    monkeypatch.delenv("FAKE_FPM_FAIL", raising=False)
    monkeypatch.delenv("FAKE_FPM_NO_OUTPUT", raising=False)
    monkeypatch.delenv("FAKE_PUSH_FAIL", raising=False)
    return log


@pytest.fixture()
def fake_fpm(tmp_path: Path, tool_log: Path) -> list[str]:
    script = tmp_path / "fake_fpm.py"
    script.write_text(_FAKE_FPM, encoding="utf-8")
    return [sys.executable, str(script)]


@pytest.fixture()
def fake_package_cloud(tmp_path: Path, tool_log: Path) -> list[str]:
    script = tmp_path / "fake_package_cloud.py"
    script.write_text(_FAKE_PUSH, encoding="utf-8")
    return [sys.executable, str(script)]


@pytest.fixture()
def packaging_settings(fake_fpm: list[str]) -> PackagingConfig:
    return PackagingConfig(builder_command=fake_fpm)


@pytest.fixture()
def publish_settings(fake_package_cloud: list[str]) -> PublishConfig:
    return PublishConfig(command=fake_package_cloud)


@pytest.fixture()
def tmp_config_file(tmp_path: Path, fake_fpm: list[str], fake_package_cloud: list[str]) -> Path:
    """A config file wiring the fake tools in; valid against the schema."""
    def _yaml_list(argv: list[str]) -> str:
        return "[" + ", ".join(f'"{part}"' for part in argv) + "]"

    config_content = textwrap.dedent(f"""\
        global:
          config_version: "1.0.0"
          log_level: "DEBUG"
        packaging:
          builder_command: {_yaml_list(fake_fpm)}
        publish:
          user: "canary-test"
          repo: "agent"
          command: {_yaml_list(fake_package_cloud)}
    """)
    config_file = tmp_path / "test_config.yaml"
    config_file.write_text(config_content, encoding="utf-8")
    return config_file


@pytest.fixture()
def invalid_config_file(tmp_path: Path) -> Path:
    """Valid YAML that fails schema validation (missing config_version)."""
    config_content = textwrap.dedent("""\
        global:
          log_level: "INFO"
    """)
    config_file = tmp_path / "invalid_config.yaml"
    config_file.write_text(config_content, encoding="utf-8")
    return config_file


@pytest.fixture()
def broken_yaml_file(tmp_path: Path) -> Path:
    """A file that isn't valid YAML at all."""
    config_file = tmp_path / "broken.yaml"
    config_file.write_text("{{not: yaml: at: all:::", encoding="utf-8")
    return config_file


@pytest.fixture()
def tool_calls(tool_log: Path) -> Callable[[], list[dict]]:
    """Returns a reader for the fake tools' invocation log, oldest first."""

    def _read() -> list[dict]:
        if not tool_log.exists():
            return []
        return [json.loads(line) for line in tool_log.read_text(encoding="utf-8").splitlines() if line]

    return _read
