"""Persistence of accepted scripts."""

import json
import shutil
import uuid
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict

import pendulum

from ..config import Config
from ..generation.script import save_script, save_tts_script
from ..models import ScriptRecord


class ScriptStore(ABC):
    """Abstract script store."""

    @abstractmethod
    def save(self, record: ScriptRecord) -> str:
        """
        Persist one script.

        Returns:
            Script id
        """
        pass

    @abstractmethod
    def delete(self, script_id: str) -> None:
        """Remove a saved script; unknown ids are ignored."""
        pass


class FileScriptStore(ScriptStore):
    """Write scripts under ``<workspace>/runs/<date>/<script id>/``."""

    def __init__(self, config: Config) -> None:
        self.config = config

    def script_dir(self, record: ScriptRecord, script_id: str) -> Path:
        run_date = pendulum.parse(record.generated_at).to_date_string()
        return self.config.get_run_dir(run_date) / script_id

    def save(self, record: ScriptRecord) -> str:
        script_id = uuid.uuid4().hex[:12]
        script_dir = self.script_dir(record, script_id)
        script_dir.mkdir(parents=True, exist_ok=True)

        save_script(record, script_dir / "script.txt")
        save_tts_script(record, script_dir / "script_tts.txt")
        with open(script_dir / "record.json", "w") as f:
            json.dump({"script_id": script_id, **record.model_dump(mode="json")}, f, indent=2)

        return script_id

    def delete(self, script_id: str) -> None:
        for script_dir in self.config.workspace_root.glob(f"runs/*/{script_id}"):
            shutil.rmtree(script_dir)


class InMemoryScriptStore(ScriptStore):
    """Keep records in memory, keyed by script id."""

    def __init__(self) -> None:
        self.records: Dict[str, ScriptRecord] = {}
        self.saved = 0

    def save(self, record: ScriptRecord) -> str:
        self.saved += 1
        script_id = f"script-{self.saved}"
        self.records[script_id] = record
        return script_id

    def delete(self, script_id: str) -> None:
        self.records.pop(script_id, None)
