import logging
from pathlib import Path

from pydantic import ValidationError

from common.jsonio import atomic_write_json, load_json
from kickoff.models import GeneratedProject

logger = logging.getLogger(__name__)


def project_path(*, data_dir: str | Path, session_id: str) -> Path:
    return Path(data_dir) / session_id / "project.json"


def save_project(data_dir: str | Path, project: GeneratedProject) -> Path:
    target = project_path(data_dir=data_dir, session_id=project.generation_metadata.session_id)
    return atomic_write_json(target, project.model_dump(mode="json"))


def load_project(data_dir: str | Path, session_id: str) -> GeneratedProject | None:
    path = project_path(data_dir=data_dir, session_id=session_id)
    data = load_json(path)
    if data is None:
        return None
    try:
        return GeneratedProject.model_validate(data)
    except ValidationError as e:
        logger.warning("Ignoring malformed project file %s: %s", path, e.error_count())
        return None
