"""Generation of rust-project.json so rust-analyzer understands the exercises."""

from __future__ import annotations

import dataclasses
import glob
import json
import os
import subprocess
from dataclasses import dataclass, field


@dataclass
class Crate:
    """One crate entry of rust-project.json."""

    root_module: str
    edition: str = "2021"
    deps: list[str] = field(default_factory=list)
    # Lets rust-analyzer work inside #[test] blocks.
    cfg: list[str] = field(default_factory=lambda: ["test"])


@dataclass
class RustAnalyzerProject:
    """Contents of rust-project.json."""

    sysroot_src: str = ""
    crates: list[Crate] = field(default_factory=list)

    def to_json(self) -> str:
        return json.dumps(dataclasses.asdict(self), separators=(",", ":"), ensure_ascii=False)

    def write_to_disk(self, path: str | os.PathLike = "./rust-project.json") -> None:
        """Write the project description to disk."""
        with open(path, "w", encoding="utf-8") as handle:
            handle.write(self.to_json())

    def exercises_to_json(self, root: str | os.PathLike = "./exercises") -> None:
        """Add a crate for every .rs path found below root."""
        pattern = os.path.join(os.fspath(root), "**", "*")
        for path in sorted(glob.glob(pattern, recursive=True, include_hidden=True)):
            if os.path.splitext(os.path.basename(path))[1] == ".rs" and not os.path.basename(path) == ".rs":
                self.crates.append(Crate(root_module=path))

    def get_sysroot_src(self) -> str:
        """Locate the standard library sources, from RUST_SRC_PATH or rustc."""
        from_env = os.environ.get("RUST_SRC_PATH")
        if from_env is not None:
            self.sysroot_src = from_env
            return self.sysroot_src
        result = subprocess.run(
            ["rustc", "--print", "sysroot"], capture_output=True, check=False
        )
        output = result.stdout.decode("utf-8", errors="replace")
        parts = output.split()
        toolchain = parts[0] if parts else output
        print(f"Determined toolchain: {toolchain}\n")
        self.sysroot_src = os.path.join(toolchain, "lib", "rustlib", "src", "rust", "library")
        return self.sysroot_src