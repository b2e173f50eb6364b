"""
Project model and load-order resolution.

A project on disk follows the Vocalls layout::

    project.json                           optional, may hold libraryOrder
    src/globalCode.js                      init
    src/globalVariables.js                 globals
    src/globalLibraries/active/*.js        library
    src/callScripts/<entry>.js             entry (default: main)

Both the assembler and the simulator resolve fragments through
``resolve_load_order`` so they can never disagree about ordering.
"""
import json
import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Callable, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .errors import FragmentNotFound
from .sorting import order

logger = logging.getLogger("voc.project")

CONFIG_FILE = "project.json"
INIT_PATH = "src/globalCode.js"
GLOBALS_PATH = "src/globalVariables.js"
LIBRARY_DIR = "src/globalLibraries/active"
ENTRY_DIR = "src/callScripts"

FragmentReader = Callable[[Path], str]


class FragmentRole(str, Enum):
    INIT = "init"
    GLOBALS = "globals"
    LIBRARY = "library"
    ENTRY = "entry"


ROLE_TITLES = {
    FragmentRole.INIT: "Global Code",
    FragmentRole.GLOBALS: "Global Variables",
    FragmentRole.LIBRARY: "Global Library",
    FragmentRole.ENTRY: "Main Script",
}


class ProjectConfig(BaseModel):
    """The per-project ``project.json`` record."""
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    name: Optional[str] = None
    customer: str = "Unknown"
    description: str = ""
    version: str = "1.0.0"
    library_order: List[str] = Field(default_factory=list, alias="libraryOrder")


@dataclass(frozen=True)
class FragmentRef:
    role: FragmentRole
    name: str   # relative to the project root, posix separators
    path: Path

    @property
    def required(self) -> bool:
        return self.role is not FragmentRole.LIBRARY


@dataclass(frozen=True)
class Fragment:
    ref: FragmentRef
    text: str

    @property
    def name(self) -> str:
        return self.ref.name

    @property
    def role(self) -> FragmentRole:
        return self.ref.role


@dataclass(frozen=True)
class ProjectDescriptor:
    root: Path
    name: str
    init_path: str = INIT_PATH
    globals_path: str = GLOBALS_PATH
    entry_path: str = f"{ENTRY_DIR}/main.js"
    library_dir: str = LIBRARY_DIR
    library_order: List[str] = field(default_factory=list)

    @classmethod
    def from_path(cls, project_path: Union[str, Path], entry_script_name: str = "main") -> "ProjectDescriptor":
        root = Path(project_path)
        config = load_project_config(root)
        script = entry_script_name if entry_script_name.endswith(".js") else f"{entry_script_name}.js"
        return cls(
            root=root,
            name=config.name or root.name,
            entry_path=f"{ENTRY_DIR}/{script}",
            library_order=list(config.library_order),
        )


def load_project_config(root: Path) -> ProjectConfig:
    """Read project.json; absence means defaults (no explicit library order)."""
    config_path = root / CONFIG_FILE
    if not config_path.is_file():
        return ProjectConfig()
    try:
        data = json.loads(config_path.read_text(encoding="utf-8"))
        return ProjectConfig.model_validate(data)
    except (json.JSONDecodeError, ValidationError) as e:
        logger.warning(f"Ignoring malformed {config_path}: {e}")
        return ProjectConfig()


def list_library_files(root: Path, library_dir: str = LIBRARY_DIR) -> List[str]:
    libs = root / library_dir
    if not libs.is_dir():
        return []
    return [p.name for p in libs.iterdir() if p.is_file() and p.suffix == ".js"]


def resolve_load_order(project: ProjectDescriptor) -> List[FragmentRef]:
    """init, globals, libraries (sorted), entry."""
    root = project.root
    refs = [
        FragmentRef(FragmentRole.INIT, project.init_path, root / project.init_path),
        FragmentRef(FragmentRole.GLOBALS, project.globals_path, root / project.globals_path),
    ]
    for lib in order(list_library_files(root, project.library_dir), project.library_order):
        name = f"{project.library_dir}/{lib}"
        refs.append(FragmentRef(FragmentRole.LIBRARY, name, root / name))
    refs.append(FragmentRef(FragmentRole.ENTRY, project.entry_path, root / project.entry_path))
    return refs


def read_text(path: Path) -> str:
    return path.read_text(encoding="utf-8")


def load_fragments(
    project: ProjectDescriptor,
    strict: bool = False,
    reader: Optional[FragmentReader] = None,
) -> List[Fragment]:
    """Read every fragment of the load order, fresh from storage.

    A missing required fragment raises FragmentNotFound when ``strict``,
    otherwise it is skipped with a warning.
    """
    reader = reader or read_text
    fragments = []
    for ref in resolve_load_order(project):
        if not ref.path.is_file():
            if strict:
                raise FragmentNotFound(ref.name, ref.role.value)
            logger.warning(f"File not found, skipping {ref.role.value} fragment: {ref.name}")
            continue
        fragments.append(Fragment(ref, reader(ref.path)))
    return fragments
