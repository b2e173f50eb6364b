"""Workspace helpers: locating, listing and cleaning projects."""
import logging
import shutil
from pathlib import Path
from typing import List, Optional, Union

from .config import settings
from .errors import ProjectNotFound
from .project import ProjectConfig, load_project_config

logger = logging.getLogger("voc.workspace")


def projects_dir(workspace: Optional[Union[str, Path]] = None) -> Path:
    root = Path(workspace) if workspace is not None else Path(settings.WORKSPACE_ROOT)
    return root / settings.PROJECTS_DIR


def find_project(name: str, workspace: Optional[Union[str, Path]] = None) -> Path:
    if not name or not name.strip():
        raise ProjectNotFound("Project name must not be empty")
    path = projects_dir(workspace) / name
    if not path.is_dir():
        raise ProjectNotFound(f"Project not found: {name}")
    return path


def list_projects(workspace: Optional[Union[str, Path]] = None) -> List[str]:
    base = projects_dir(workspace)
    if not base.is_dir():
        return []
    return sorted(
        entry.name for entry in base.iterdir()
        if entry.is_dir() and not entry.name.startswith(".")
    )


def project_info(project_path: Path) -> ProjectConfig:
    config = load_project_config(project_path)
    if not config.name:
        config = config.model_copy(update={"name": project_path.name})
    return config


def clean_project(project_path: Path) -> bool:
    """Remove the project's dist directory; returns whether anything was removed."""
    dist = project_path / settings.DIST_DIR
    if not dist.exists():
        return False
    shutil.rmtree(dist)
    logger.info(f"Cleaned {dist}")
    return True
