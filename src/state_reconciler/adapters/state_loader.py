from __future__ import annotations

import json
import os
import subprocess
from pathlib import Path
from typing import Any, Dict, List, Optional


class StateLoaderError(RuntimeError):
    """Exception raised when Terraform state ingestion fails."""


class StateLoader:
    """Load prior Terraform state from a state file or by running ``terraform state pull``."""

    def __init__(
        self,
        working_dir: str | os.PathLike[str] = ".",
        *,
        state_path: str | os.PathLike[str] | None = None,
        env: Optional[dict[str, str]] = None,
        inherit_environment: bool = False,
        terraform_bin: str = "terraform",
    ) -> None:
        self.working_dir = Path(working_dir).resolve()
        self.state_path = Path(state_path).resolve() if state_path else None
        self.env = env or {}
        self.inherit_environment = inherit_environment
        self.terraform_bin = terraform_bin

    def load_state(self) -> Dict[str, Any]:
        """Load the state document from a file or from the configured backend."""

        if self.state_path:
            return self._load_state_file(self.state_path)

        return self._pull_state()

    # Artifact ingestion helpers -------------------------------------------------
    def _load_state_file(self, path: Path) -> Dict[str, Any]:
        if not path.exists():
            raise StateLoaderError(f"Terraform state file not found: {path}")

        with path.open("r", encoding="utf-8") as handle:
            try:
                data = json.load(handle)
            except json.JSONDecodeError as exc:
                raise StateLoaderError(f"Invalid JSON in state file: {path}") from exc

        return self._ensure_document(data, str(path))

    # Terraform execution --------------------------------------------------------
    def _pull_state(self) -> Dict[str, Any]:
        completed = self._run_command(
            [self.terraform_bin, "state", "pull"],
            cwd=self.working_dir,
            env=self._build_environment(),
            capture_output=True,
        )
        if not completed.stdout.strip():
            # No state stored yet; an empty document has no resources.
            return {"version": 4, "resources": []}

        try:
            data = json.loads(completed.stdout)
        except json.JSONDecodeError as exc:
            raise StateLoaderError("Command output was not valid JSON") from exc

        return self._ensure_document(data, "terraform state pull")

    def _build_environment(self) -> dict[str, str]:
        if self.inherit_environment:
            env_vars = os.environ.copy()
        else:
            env_vars = {"PATH": os.environ.get("PATH", "")}

        env_vars.update(self.env)
        return env_vars

    def _ensure_document(self, data: Any, origin: str) -> Dict[str, Any]:
        if not isinstance(data, dict):
            raise StateLoaderError(f"Terraform state must be a JSON object: {origin}")
        return data

    # Command runner -------------------------------------------------------------
    def _run_command(
        self,
        args: List[str],
        *,
        cwd: Path | None = None,
        env: Optional[dict[str, str]] = None,
        capture_output: bool = False,
    ) -> subprocess.CompletedProcess[str]:
        try:
            completed = subprocess.run(
                args,
                cwd=cwd,
                env=env,
                check=True,
                capture_output=capture_output,
                text=True,
            )
        except FileNotFoundError as exc:
            raise StateLoaderError(f"Executable not found: {args[0]}") from exc
        except subprocess.CalledProcessError as exc:
            raise StateLoaderError(
                f"Command '{' '.join(args)}' failed with exit code {exc.returncode}"
            ) from exc

        return completed


__all__ = ["StateLoader", "StateLoaderError"]
