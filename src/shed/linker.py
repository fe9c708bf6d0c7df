"""Cross-reference packages and Docker artifacts with project directories.

Two independent, best-effort passes:

* package usage: which projects mention a Homebrew or npm package name in
  their manifests, build files, compose files or CI workflows;
* container provenance: which project a container, image or volume came
  from, using bind mounts, compose labels and compose files.

Package matching is a raw case-insensitive substring test, so short names
such as ``core`` also match unrelated words. That is a known limitation.
"""

import json
import logging
import re
from pathlib import Path
from typing import Callable, Iterable, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from shed.categories import (
    CI_DIRECTORIES,
    COMPOSE_FILENAMES,
    GIT_MARKER,
    LINKER_SKIP_DIRECTORIES,
    SKIP_DIRECTORIES,
)
from shed.models import (
    ArtifactKind,
    DockerData,
    DockerImage,
    LinkMap,
    ProjectLink,
    ProvenanceLinks,
)
from shed.pool import BoundedPool
from shed.probe import run
from shed.recursive_scanner import find_relevant_files, list_scan_roots

log = logging.getLogger(__name__)

CONTENT_CAP = 50_000
READ_CONCURRENCY = 8
INSPECT_CONCURRENCY = 4

COMPOSE_WORKDIR_LABEL = "com.docker.compose.project.working_dir"

_NODE_IMAGE = re.compile(r"\bnode[:\d]")
_COMPOSE_FILE = re.compile(r"^docker-compose.*\.ya?ml$")
_COMPOSE_IMAGE = re.compile(r"""^\s*image:\s*["']?([^"'\s#]+)""")


# =============================================================================
# Package usage
# =============================================================================


def is_relevant_file(name: str) -> bool:
    """Whether a file may declare or use a tool package."""
    return (
        name in ("package.json", "Makefile", "Brewfile")
        or name.startswith("Dockerfile")
        or _COMPOSE_FILE.match(name) is not None
        or name.endswith(".zig")
        or (name.endswith((".yml", ".yaml")) and name != "pnpm-lock.yaml")
    )


def _read_capped(path: Path, cap: int) -> Optional[str]:
    try:
        with open(path, encoding="utf-8", errors="replace") as f:
            return f.read(cap)
    except OSError as e:
        log.debug("Cannot read %s: %s", path, e)
        return None


def read_project_files(
    project_dir: Path,
    max_depth: int = 3,
    content_cap: int = CONTENT_CAP,
) -> dict[str, str]:
    """
    Read every relevant file of a project.

    Returns:
        Mapping of POSIX relative path to content truncated to content_cap
    """
    files = find_relevant_files(
        project_dir,
        is_relevant_file,
        max_depth=max_depth,
        skip=LINKER_SKIP_DIRECTORIES,
        allowed_hidden=CI_DIRECTORIES,
    )
    contents = BoundedPool(READ_CONCURRENCY).map(
        lambda p: _read_capped(p, content_cap), files, default=None
    )
    return {
        path.relative_to(project_dir).as_posix(): content
        for path, content in zip(files, contents)
        if content is not None
    }


def _mentions(content_lower: str, name_lower: str) -> bool:
    if name_lower in content_lower:
        return True
    # Base-image shorthand such as "FROM node:20" or "node18"
    return name_lower == "node" and _NODE_IMAGE.search(content_lower) is not None


def match_packages(
    package_names: Iterable[str],
    projects: list[tuple[str, dict[str, str]]],
) -> LinkMap:
    """
    Match package names against project file contents.

    Args:
        package_names: Names to look for
        projects: (project name, relative path -> content) in discovery order

    Returns:
        LinkMap holding only packages referenced by at least one project
    """
    lowered = [
        (name, [(rel, content.lower()) for rel, content in files.items()])
        for name, files in projects
    ]

    link_map: LinkMap = {}
    for package in dict.fromkeys(package_names):
        package_lower = package.lower()
        matches = []
        for project_name, files in lowered:
            matched = [rel for rel, content in files if _mentions(content, package_lower)]
            if matched:
                matches.append(ProjectLink(project_name=project_name, files=matched))
        if matches:
            link_map[package] = matches
    return link_map


def build_link_map(
    package_names: list[str],
    home: Optional[Path] = None,
    skip: frozenset[str] = SKIP_DIRECTORIES,
    max_depth: int = 3,
    content_cap: int = CONTENT_CAP,
) -> LinkMap:
    """
    Find which projects under home reference each package.

    Projects are the non-hidden, non-system top-level directories of home.
    """
    if not package_names:
        return {}
    home = home or Path.home()

    project_dirs = list_scan_roots(home, skip)
    file_maps = BoundedPool(READ_CONCURRENCY).map(
        lambda d: read_project_files(d, max_depth, content_cap), project_dirs, default={}
    )
    projects = [(d.name, files) for d, files in zip(project_dirs, file_maps) if files]
    log.debug("Scanned %d projects for %d package names", len(projects), len(package_names))

    return match_packages(package_names, projects)


# =============================================================================
# Container provenance
# =============================================================================


class _Mount(BaseModel):
    model_config = ConfigDict(extra="ignore")

    type: str = Field("", alias="Type")
    source: str = Field("", alias="Source")


class _InspectConfig(BaseModel):
    model_config = ConfigDict(extra="ignore")

    labels: Optional[dict[str, str]] = Field(None, alias="Labels")


class _InspectRecord(BaseModel):
    model_config = ConfigDict(extra="ignore")

    mounts: Optional[list[_Mount]] = Field(None, alias="Mounts")
    config: Optional[_InspectConfig] = Field(None, alias="Config")

    @property
    def labels(self) -> dict[str, str]:
        return (self.config.labels if self.config else None) or {}


def inspect_object(args: list[str]) -> Optional[_InspectRecord]:
    """Run ``docker <args>`` and validate the first inspect record."""
    output = run("docker", args)
    if not output:
        return None
    try:
        records = json.loads(output)
        if not isinstance(records, list) or not records:
            return None
        return _InspectRecord.model_validate(records[0])
    except (json.JSONDecodeError, ValidationError) as e:
        log.debug("Malformed inspect output for %s: %s", args[-1], e)
        return None


def default_is_repo_root(path: Path) -> bool:
    return (path / GIT_MARKER).exists()


def image_key(image: DockerImage) -> str:
    return f"{image.display_tag}@{image.id}"


def parse_compose_images(content: str) -> list[str]:
    """Image names declared with ``image:`` lines in a compose file."""
    return [m.group(1) for m in map(_COMPOSE_IMAGE.match, content.splitlines()) if m]


def _image_matches(image: DockerImage, reference: str) -> bool:
    if not reference:
        return False
    return reference in (image.display_tag, image.repository)


class ProvenanceLinker:
    """
    Attribute container artifacts to project directories under home.

    Produces a ProvenanceLinks table; collector output is never mutated.
    """

    def __init__(
        self,
        home: Optional[Path] = None,
        is_repo_root: Callable[[Path], bool] = default_is_repo_root,
    ):
        self.home = Path(home) if home else Path.home()
        self.is_repo_root = is_repo_root
        self.links = ProvenanceLinks()
        # working dir -> (project name, project path or None)
        self.compose_dirs: dict[str, tuple[str, Optional[str]]] = {}

    def project_for(self, source: str) -> Optional[tuple[str, Optional[str]]]:
        """
        Resolve a host path to (project name, repository root).

        The name is the first path segment below home; the root is the
        nearest enclosing directory (up to that segment) holding a .git.
        """
        path = Path(source)
        try:
            relative = path.relative_to(self.home)
        except ValueError:
            return None
        if not relative.parts:
            return None

        top = self.home / relative.parts[0]
        current = path
        while True:
            if self.is_repo_root(current):
                return relative.parts[0], str(current)
            if current == top or current.parent == current:
                return relative.parts[0], None
            current = current.parent

    def _link(self, kind: ArtifactKind, key: str, project: tuple[str, Optional[str]]) -> None:
        name, repo_path = project
        self.links.add_name(kind, key, name)
        if repo_path:
            self.links.add_path(kind, key, repo_path)

    def _link_from_labels(self, kind: ArtifactKind, key: str, labels: dict[str, str]) -> None:
        workdir = labels.get(COMPOSE_WORKDIR_LABEL)
        if not workdir:
            return
        project = self.project_for(workdir)
        if project:
            self._link(kind, key, project)
            self.compose_dirs.setdefault(workdir, project)

    def link_containers(self, docker: DockerData) -> None:
        records = BoundedPool(INSPECT_CONCURRENCY).map(
            lambda c: inspect_object(["inspect", c.name]), docker.containers, default=None
        )
        for container, record in zip(docker.containers, records):
            if record is None:
                continue
            for mount in record.mounts or []:
                if mount.type != "bind" or not mount.source:
                    continue
                project = self.project_for(mount.source)
                if project:
                    self._link(ArtifactKind.CONTAINER, container.name, project)
            self._link_from_labels(ArtifactKind.CONTAINER, container.name, record.labels)

    def propagate_to_images(self, docker: DockerData) -> None:
        """Images share the links of containers created from them."""
        for container in docker.containers:
            names = self.links.names_for(ArtifactKind.CONTAINER, container.name)
            paths = self.links.paths_for(ArtifactKind.CONTAINER, container.name)
            if not names and not paths:
                continue
            for image in docker.images:
                if not _image_matches(image, container.image):
                    continue
                for name in names:
                    self.links.add_name(ArtifactKind.IMAGE, image_key(image), name)
                for path in paths:
                    self.links.add_path(ArtifactKind.IMAGE, image_key(image), path)

    def link_unlinked_images(self, docker: DockerData) -> None:
        """Probe images without links for their own compose labels."""
        unlinked = [
            image
            for image in docker.images
            if not self.links.names_for(ArtifactKind.IMAGE, image_key(image))
        ]
        records = BoundedPool(INSPECT_CONCURRENCY).map(
            lambda i: inspect_object(["image", "inspect", i.id or i.display_tag]),
            unlinked,
            default=None,
        )
        for image, record in zip(unlinked, records):
            if record is not None:
                self._link_from_labels(ArtifactKind.IMAGE, image_key(image), record.labels)

    def link_compose_files(self, docker: DockerData) -> None:
        """Images declared in a project's compose file belong to that project."""
        for workdir, (name, repo_path) in list(self.compose_dirs.items()):
            content = _read_first_compose_file(Path(workdir))
            if content is None:
                continue
            for reference in parse_compose_images(content):
                for image in docker.images:
                    if _image_matches(image, reference):
                        self._link(ArtifactKind.IMAGE, image_key(image), (name, repo_path or workdir))

    def link_volumes(self, docker: DockerData, known_projects: Iterable[str] = ()) -> None:
        """Volumes named ``<project>_...`` or ``<project>-...`` belong to that project."""
        projects = list(dict.fromkeys([*known_projects, *self._linked_names()]))
        for volume in docker.volumes:
            volume_lower = volume.name.lower()
            for project in projects:
                prefix = project.lower()
                if volume_lower.startswith((prefix + "_", prefix + "-")):
                    self.links.add_name(ArtifactKind.VOLUME, volume.name, project)

    def _linked_names(self) -> list[str]:
        return [name for names in self.links.names.values() for name in names]

    def run(self, docker: DockerData, known_projects: Iterable[str] = ()) -> ProvenanceLinks:
        if not docker.online:
            return self.links
        self.link_containers(docker)
        self.propagate_to_images(docker)
        self.link_unlinked_images(docker)
        self.link_compose_files(docker)
        self.link_volumes(docker, known_projects)
        return self.links


def _read_first_compose_file(workdir: Path) -> Optional[str]:
    for filename in COMPOSE_FILENAMES:
        path = workdir / filename
        if path.is_file():
            return _read_capped(path, CONTENT_CAP)
    return None


def link_docker_projects(
    docker: DockerData,
    home: Optional[Path] = None,
    known_projects: Iterable[str] = (),
    is_repo_root: Callable[[Path], bool] = default_is_repo_root,
) -> ProvenanceLinks:
    """Build the provenance link table for every container, image and volume."""
    return ProvenanceLinker(home, is_repo_root).run(docker, known_projects)


def _merged(existing: list[str], added: list[str]) -> list[str]:
    return list(dict.fromkeys([*existing, *added]))


def apply_provenance(docker: DockerData, links: ProvenanceLinks) -> DockerData:
    """Return a copy of docker with the link table merged into its artifacts."""
    images = [
        image.model_copy(
            update={
                "linked_projects": _merged(
                    image.linked_projects, links.names_for(ArtifactKind.IMAGE, image_key(image))
                ),
                "linked_project_paths": _merged(
                    image.linked_project_paths,
                    links.paths_for(ArtifactKind.IMAGE, image_key(image)),
                ),
            }
        )
        for image in docker.images
    ]
    containers = [
        container.model_copy(
            update={
                "linked_projects": _merged(
                    container.linked_projects,
                    links.names_for(ArtifactKind.CONTAINER, container.name),
                ),
                "linked_project_paths": _merged(
                    container.linked_project_paths,
                    links.paths_for(ArtifactKind.CONTAINER, container.name),
                ),
            }
        )
        for container in docker.containers
    ]
    volumes = [
        volume.model_copy(
            update={
                "linked_projects": _merged(
                    volume.linked_projects, links.names_for(ArtifactKind.VOLUME, volume.name)
                )
            }
        )
        for volume in docker.volumes
    ]
    return docker.model_copy(update={"images": images, "containers": containers, "volumes": volumes})
