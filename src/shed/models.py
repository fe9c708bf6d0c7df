"""Data models for shed."""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


def format_size(size_bytes: int) -> str:
    """Format bytes to a human-readable string (binary units)."""
    if size_bytes <= 0:
        return "0 B"
    units = ["B", "KB", "MB", "GB", "TB"]
    value = float(size_bytes)
    index = 0
    while value >= 1024 and index < len(units) - 1:
        value /= 1024
        index += 1
    if index == 0:
        return f"{size_bytes} B"
    return f"{value:.0f} {units[index]}" if value >= 100 else f"{value:.1f} {units[index]}"


class SizedModel(BaseModel):
    """Base for every record that carries a size."""

    size_bytes: int = Field(0, ge=0, description="Size in bytes")

    @property
    def size_human(self) -> str:
        """Human-readable size string."""
        return format_size(self.size_bytes)


# =============================================================================
# Configuration input
# =============================================================================


class ScanRoot(BaseModel):
    """A directory under which project discovery begins."""

    path: str = Field(..., description="Directory to scan (supports ~ expansion)")
    depth: int = Field(3, ge=0, description="Maximum recursion depth below the root")


# =============================================================================
# Applications
# =============================================================================


class AppEntry(SizedModel):
    """An installed application bundle."""

    name: str = Field(..., description="Bundle name including suffix")
    path: str = Field("", description="Full path of the bundle")


class AppsData(BaseModel):
    apps: list[AppEntry] = Field(default_factory=list)
    total_bytes: int = 0


# =============================================================================
# Homebrew
# =============================================================================


class BrewPackage(SizedModel):
    """An installed Homebrew formula."""

    name: str
    version: str = "?"
    description: str = ""
    installed_on_request: bool = Field(
        False, description="Installed explicitly rather than as a dependency"
    )
    installed_on: Optional[str] = None
    dependencies: list[str] = Field(default_factory=list)


class BrewData(BaseModel):
    packages: list[BrewPackage] = Field(default_factory=list)
    cache_bytes: int = Field(0, ge=0, description="Size of the Homebrew download cache")
    total_bytes: int = 0


# =============================================================================
# npm
# =============================================================================


class NpmGlobalPackage(SizedModel):
    """A globally installed npm package."""

    name: str
    version: str = "?"
    description: str = ""


class NpmGlobalsData(BaseModel):
    packages: list[NpmGlobalPackage] = Field(default_factory=list)
    total_bytes: int = 0


class NpmCacheData(BaseModel):
    npm_cache_bytes: int = Field(0, ge=0)
    pnpm_store_bytes: int = Field(0, ge=0)
    total_bytes: int = 0


class NodeModulesEntry(SizedModel):
    """A dependency directory found inside a project tree."""

    project_name: str = Field(..., description="Top-level directory the entry was found under")
    path: str = Field(..., description="Full path of the node_modules directory")


class NodeModulesData(BaseModel):
    entries: list[NodeModulesEntry] = Field(default_factory=list)
    total_bytes: int = 0


# =============================================================================
# Git repositories
# =============================================================================


class GitRepoEntry(SizedModel):
    """A version-controlled project tree."""

    name: str
    path: str
    git_size_bytes: int = Field(0, ge=0, description="Size of the .git directory alone")
    node_modules_size_bytes: int = Field(0, ge=0, description="Size of a co-located node_modules")
    linked_docker_images: list[str] = Field(default_factory=list)


class GitReposData(BaseModel):
    repos: list[GitRepoEntry] = Field(default_factory=list)
    total_bytes: int = 0
    total_git_bytes: int = 0
    total_node_modules_bytes: int = 0


# =============================================================================
# IDE / tool caches
# =============================================================================


class CacheCandidate(BaseModel):
    """A well-known cache location that may or may not exist."""

    model_config = {"frozen": True}

    tool: str
    label: str
    path: str
    cleanable: bool = True
    warning_message: Optional[str] = None


class DevCacheEntry(SizedModel):
    tool: str
    label: str
    path: str
    cleanable: bool = Field(..., description="Safe to delete with only a re-fetch/rebuild cost")
    warning_message: Optional[str] = None


class DevCacheGroup(BaseModel):
    tool: str
    entries: list[DevCacheEntry] = Field(default_factory=list)
    total_bytes: int = 0


class DevCachesData(BaseModel):
    groups: list[DevCacheGroup] = Field(default_factory=list)
    entries: list[DevCacheEntry] = Field(default_factory=list, description="Flat list of all entries")
    total_bytes: int = 0


# =============================================================================
# Docker
# =============================================================================

NO_VALUE = "—"


class DockerImage(SizedModel):
    repository: str
    tag: str = ""
    id: str = ""
    size_str: str = NO_VALUE
    linked_projects: list[str] = Field(default_factory=list)
    linked_project_paths: list[str] = Field(default_factory=list)

    @property
    def display_tag(self) -> str:
        """``repository:tag``, or the bare repository for untagged images."""
        if self.tag and self.tag != "<none>":
            return f"{self.repository}:{self.tag}"
        return self.repository


class DockerContainer(BaseModel):
    name: str
    image: str = ""
    state: str = ""
    size_str: str = NO_VALUE
    linked_projects: list[str] = Field(default_factory=list)
    linked_project_paths: list[str] = Field(default_factory=list)


class DockerVolume(BaseModel):
    name: str
    driver: str = "local"
    size_str: str = NO_VALUE
    linked_projects: list[str] = Field(default_factory=list)


class DockerData(BaseModel):
    online: bool = False
    images: list[DockerImage] = Field(default_factory=list)
    containers: list[DockerContainer] = Field(default_factory=list)
    volumes: list[DockerVolume] = Field(default_factory=list)
    build_cache_size_str: str = NO_VALUE
    build_cache_reclaimable_str: str = NO_VALUE
    total_size_str: str = NO_VALUE
    reclaimable_size_str: str = NO_VALUE


class ArtifactKind(str, Enum):
    """Kinds of container artifacts the provenance pass links."""

    IMAGE = "image"
    CONTAINER = "container"
    VOLUME = "volume"


class ProvenanceLinks(BaseModel):
    """Edges from container artifacts to the projects they belong to.

    Keys are ``"<kind>:<artifact key>"``; values keep insertion order and
    never hold duplicates.
    """

    names: dict[str, list[str]] = Field(default_factory=dict)
    paths: dict[str, list[str]] = Field(default_factory=dict)

    @staticmethod
    def key(kind: ArtifactKind, artifact: str) -> str:
        return f"{kind.value}:{artifact}"

    def add_name(self, kind: ArtifactKind, artifact: str, project: str) -> bool:
        """Record a project name for an artifact. Returns False if already linked."""
        linked = self.names.setdefault(self.key(kind, artifact), [])
        if project in linked:
            return False
        linked.append(project)
        return True

    def add_path(self, kind: ArtifactKind, artifact: str, project_path: str) -> bool:
        """Record a project path for an artifact. Returns False if already linked."""
        linked = self.paths.setdefault(self.key(kind, artifact), [])
        if project_path in linked:
            return False
        linked.append(project_path)
        return True

    def names_for(self, kind: ArtifactKind, artifact: str) -> list[str]:
        return list(self.names.get(self.key(kind, artifact), []))

    def paths_for(self, kind: ArtifactKind, artifact: str) -> list[str]:
        return list(self.paths.get(self.key(kind, artifact), []))


# =============================================================================
# Cleanup actions
# =============================================================================


class CleanupAction(SizedModel):
    """An external command that reclaims space."""

    id: str
    label: str
    description: str
    command: str
    args: list[str] = Field(default_factory=list)
    warning: Optional[str] = None


class CleanupActionsData(BaseModel):
    actions: list[CleanupAction] = Field(default_factory=list)


# =============================================================================
# Linker and snapshot
# =============================================================================


class ProjectLink(BaseModel):
    """A project that references a package, with the files that mention it."""

    project_name: str
    files: list[str] = Field(default_factory=list)


LinkMap = dict[str, list[ProjectLink]]


class Snapshot(BaseModel):
    """One complete, timestamped inventory."""

    brew: BrewData = Field(default_factory=BrewData)
    npm_globals: NpmGlobalsData = Field(default_factory=NpmGlobalsData)
    npm_cache: NpmCacheData = Field(default_factory=NpmCacheData)
    node_modules: NodeModulesData = Field(default_factory=NodeModulesData)
    docker: DockerData = Field(default_factory=DockerData)
    apps: AppsData = Field(default_factory=AppsData)
    dev_caches: DevCachesData = Field(default_factory=DevCachesData)
    git_repos: GitReposData = Field(default_factory=GitReposData)
    cleanup_actions: CleanupActionsData = Field(default_factory=CleanupActionsData)
    links: LinkMap = Field(default_factory=dict)
    total_disk_bytes: int = Field(0, ge=0)
    created_at: datetime = Field(default_factory=datetime.now)

    @property
    def package_names(self) -> list[str]:
        """Names of all Homebrew and global npm packages."""
        return [p.name for p in self.brew.packages] + [p.name for p in self.npm_globals.packages]

    @property
    def tracked_bytes(self) -> int:
        """Total bytes attributed to developer tooling."""
        return (
            self.brew.total_bytes
            + self.brew.cache_bytes
            + self.npm_globals.total_bytes
            + self.npm_cache.total_bytes
            + self.node_modules.total_bytes
            + self.apps.total_bytes
            + self.dev_caches.total_bytes
            + self.git_repos.total_git_bytes
        )
