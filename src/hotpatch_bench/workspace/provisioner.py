from __future__ import annotations

from pathlib import Path
import shutil
import tempfile
from typing import TYPE_CHECKING

from loguru import logger

from hotpatch_bench.errors import IOFailure
from hotpatch_bench.workspace.codegen import CodeBundle

if TYPE_CHECKING:
    from hotpatch_bench.scenarios.matrix import PreparedScenario

CARGO_TOML = "Cargo.toml"
CARGO_CONFIG = Path(".cargo") / "config.toml"
TOOLCHAIN_TOML = "rust-toolchain.toml"
SOURCE_FILE = Path("src") / "main.rs"


class Workspace:
    """Ephemeral project directory holding one scenario's generated code.

    Use as a context manager; the directory is removed on exit unless
    ``keep`` was requested.
    """

    def __init__(self, root: Path, keep: bool = False) -> None:
        self._root = root
        self._keep = keep
        self._closed = False

    @classmethod
    def create(
        cls,
        prepared: PreparedScenario,
        *,
        parent: str | Path | None = None,
        keep: bool = False,
    ) -> "Workspace":
        parent_dir: Path | None = None
        if parent is not None:
            parent_dir = Path(parent)
            try:
                parent_dir.mkdir(parents=True, exist_ok=True)
            except OSError as exc:
                raise IOFailure(parent_dir, "failed to create workspace parent directory") from exc

        try:
            root = Path(tempfile.mkdtemp(prefix=f"bench-{prepared.slug}-", dir=parent_dir))
        except OSError as exc:
            raise IOFailure(parent_dir or tempfile.gettempdir(), "failed to create temporary workspace") from exc

        workspace = cls(root, keep=keep)
        try:
            write_workspace_files(root, prepared.code)
        except IOFailure:
            workspace._remove()
            raise
        logger.debug("Provisioned workspace {} for {}", root, prepared.slug)
        return workspace

    @property
    def root(self) -> Path:
        return self._root

    @property
    def source_file(self) -> Path:
        return self._root / SOURCE_FILE

    def rewrite_source(self, text: str) -> None:
        path = self.source_file
        try:
            path.write_text(text, encoding="utf-8")
        except OSError as exc:
            raise IOFailure(path, "failed to update payload source for hotpatch") from exc

    def cleanup(self) -> None:
        if self._closed:
            return
        self._closed = True
        if self._keep:
            logger.info("Keeping workspace {}", self._root)
            return
        self._remove()

    def _remove(self) -> None:
        shutil.rmtree(self._root, ignore_errors=True)

    def __enter__(self) -> "Workspace":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.cleanup()


def write_workspace_files(root: Path, code: CodeBundle) -> None:
    for directory in (root / "src", root / ".cargo"):
        try:
            directory.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise IOFailure(directory, "failed to create directory in workspace") from exc

    artifacts = [
        (root / CARGO_TOML, code.cargo_toml),
        (root / SOURCE_FILE, code.src_main_rs),
        (root / CARGO_CONFIG, code.cargo_config_toml),
        (root / TOOLCHAIN_TOML, code.rust_toolchain_toml),
    ]
    for path, text in artifacts:
        try:
            path.write_text(text, encoding="utf-8")
        except OSError as exc:
            raise IOFailure(path, "failed to write generated file") from exc
