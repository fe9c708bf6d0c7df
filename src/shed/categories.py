"""Static tables for shed: skip sets, cache locations, cleanup commands."""

import os
from pathlib import Path

from pydantic import BaseModel

from shed.models import CacheCandidate

# Top-level home directories that never hold projects
SKIP_DIRECTORIES = frozenset(
    {
        "Library",
        "Desktop",
        "Downloads",
        "Documents",
        "Pictures",
        "Music",
        "Movies",
        "Public",
        "Applications",
        ".Trash",
        ".cache",
        ".local",
        ".config",
        ".npm",
        ".pnpm-store",
        ".docker",
        ".bun",
        ".cargo",
        ".rustup",
        ".pyenv",
        ".rbenv",
        ".deno",
        "node_modules",
        ".git",
    }
)

# Build output and vendored trees that are never descended into
BUILD_DIRECTORIES = frozenset({"node_modules", ".git", "dist", "build", ".next", "vendor"})

# The linker reads project files, so it only needs to avoid dependency trees
LINKER_SKIP_DIRECTORIES = frozenset({"node_modules", ".git", "vendor", "dist"})

# Hidden directories searched for CI configuration
CI_DIRECTORIES = frozenset({".github"})

GIT_MARKER = ".git"
NODE_MODULES = "node_modules"
APP_SUFFIX = ".app"

COMPOSE_FILENAMES = (
    "docker-compose.yml",
    "docker-compose.yaml",
    "compose.yml",
    "compose.yaml",
)


def expand_path(path: str) -> Path:
    """Expand ~ and environment variables in path."""
    return Path(os.path.expanduser(os.path.expandvars(path)))


class HostPaths(BaseModel):
    """Platform locations the collectors read from."""

    model_config = {"frozen": True}

    home: str = "~"
    applications: str = "/Applications"
    brew_cellar: str = "/opt/homebrew/Cellar"
    brew_cache: str = "~/Library/Caches/Homebrew"
    npm_global_modules: str = "/opt/homebrew/lib/node_modules"
    npm_cache: str = "~/.npm"

    def resolve(self, name: str) -> Path:
        return expand_path(getattr(self, name))


DEFAULT_HOST_PATHS = HostPaths()


def _candidates(tool: str, *rows: tuple) -> list[CacheCandidate]:
    return [
        CacheCandidate(
            tool=tool,
            label=row[0],
            path=row[1],
            cleanable=row[2],
            warning_message=row[3] if len(row) > 3 else None,
        )
        for row in rows
    ]


DEV_CACHE_CANDIDATES: tuple[CacheCandidate, ...] = tuple(
    _candidates(
        "VS Code",
        (
            "Extensions",
            "~/.vscode/extensions",
            False,
            "Deleting will remove all installed VS Code extensions. You'll need to reinstall them.",
        ),
        ("Cache", "~/Library/Application Support/Code/Cache", True),
        ("CachedData", "~/Library/Application Support/Code/CachedData", True),
        ("CachedExtensionVSIXs", "~/Library/Application Support/Code/CachedExtensionVSIXs", True),
        ("Workspace Storage", "~/Library/Application Support/Code/User/workspaceStorage", True),
        ("System Cache", "~/Library/Caches/com.microsoft.VSCode", True),
    )
    + _candidates(
        "Xcode",
        (
            "Xcode.app",
            "/Applications/Xcode.app",
            False,
            "Deleting will remove Xcode. You'll lose the ability to compile native code.",
        ),
        (
            "Command Line Tools",
            "/Library/Developer/CommandLineTools",
            False,
            "Deleting will remove Command Line Tools. You'll lose compilers and git.",
        ),
        ("DerivedData", "~/Library/Developer/Xcode/DerivedData", True),
        ("CoreSimulator", "~/Library/Developer/CoreSimulator", True),
        ("Xcode Caches", "~/Library/Caches/com.apple.dt.Xcode", True),
    )
    + _candidates(
        "JetBrains",
        ("JetBrains Caches", "~/Library/Caches/JetBrains", True),
        (
            "JetBrains Settings",
            "~/Library/Application Support/JetBrains",
            False,
            "Deleting will reset IDE settings, plugins and local history.",
        ),
    )
    + _candidates("Zig", ("Zig Cache", "~/.cache/zig", True))
    + _candidates("Bun", ("Bun", "~/.bun", True))
    + _candidates(
        "CocoaPods",
        ("CocoaPods Cache", "~/Library/Caches/CocoaPods", True),
        ("CocoaPods Repos", "~/.cocoapods", True),
    )
    + _candidates("TypeScript", ("TypeScript Cache", "~/Library/Caches/typescript", True))
    + _candidates(
        "Rust",
        (
            "Cargo",
            "~/.cargo",
            False,
            "Deleting will remove Cargo and installed Rust binaries. Reinstall via rustup.",
        ),
        (
            "Rustup",
            "~/.rustup",
            False,
            "Deleting will remove the Rust toolchain. Reinstall via rustup.",
        ),
    )
    + _candidates(
        "Go",
        ("Go", "~/go", False, "Deleting will remove Go packages and compiled binaries."),
        ("Go Build Cache", "~/Library/Caches/go-build", True),
    )
    + _candidates(
        "Python",
        ("pip Cache", "~/Library/Caches/pip", True),
        ("pyenv", "~/.pyenv", False, "Deleting will remove all pyenv-managed Python versions."),
        ("uv Cache", "~/Library/Caches/uv", True),
    )
    + _candidates(
        "Ruby",
        ("Ruby Gems", "~/.gem", False, "Deleting will remove all installed Ruby gems."),
        ("rbenv", "~/.rbenv", False, "Deleting will remove all rbenv-managed Ruby versions."),
    )
    + _candidates(
        "Java",
        ("Gradle Cache", "~/.gradle", True),
        ("Maven Cache", "~/.m2", True),
    )
    + _candidates("Deno", ("Deno", "~/.deno", True))
)


class CleanupDefinition(BaseModel):
    """A cleanup command and how to estimate what it frees."""

    model_config = {"frozen": True}

    id: str
    label: str
    description: str
    command: str
    args: tuple[str, ...] = ()
    warning: str | None = None
    # Either a fixed path, or a command whose stdout names the path to measure
    size_path: str | None = None
    size_path_command: tuple[str, ...] = ()


CLEANUP_DEFINITIONS: tuple[CleanupDefinition, ...] = (
    CleanupDefinition(
        id="brew-cleanup",
        label="Homebrew Cleanup",
        description="Remove stale downloads and old versions (brew cleanup)",
        command="brew",
        args=("cleanup", "--prune=all", "-s"),
        warning="Next brew install may take longer to download packages",
        size_path_command=("brew", "--cache"),
    ),
    CleanupDefinition(
        id="brew-autoremove",
        label="Homebrew Autoremove",
        description="Remove unused dependencies (brew autoremove)",
        command="brew",
        args=("autoremove",),
        warning="Removed packages will be reinstalled if still needed by other formulae",
    ),
    CleanupDefinition(
        id="npm-cache-clean",
        label="npm Cache Clean",
        description="Clear the npm cache (~/.npm)",
        command="npm",
        args=("cache", "clean", "--force"),
        warning="Next npm install will re-download all packages",
        size_path="~/.npm",
    ),
    CleanupDefinition(
        id="pnpm-store-prune",
        label="pnpm Store Prune",
        description="Remove unreferenced packages from pnpm store",
        command="pnpm",
        args=("store", "prune"),
        warning="Removed packages will be re-downloaded when needed",
        size_path_command=("pnpm", "store", "path"),
    ),
    CleanupDefinition(
        id="docker-prune",
        label="Docker System Prune",
        description="Remove unused containers, networks, and dangling images",
        command="docker",
        args=("system", "prune", "-f"),
        warning="Unused images will be re-pulled on next docker run",
    ),
    CleanupDefinition(
        id="docker-builder-prune",
        label="Docker Builder Prune",
        description="Remove build cache",
        command="docker",
        args=("builder", "prune", "-f"),
        warning="Next docker build will be slower (no layer cache)",
    ),
    CleanupDefinition(
        id="derived-data",
        label="Clear DerivedData",
        description="Remove Xcode DerivedData (~/Library/Developer/Xcode/DerivedData)",
        command="rm",
        args=("-rf", str(expand_path("~/Library/Developer/Xcode/DerivedData"))),
        warning="Next Xcode build will do a full rebuild",
        size_path="~/Library/Developer/Xcode/DerivedData",
    ),
)


def get_cleanup_definition(action_id: str) -> CleanupDefinition | None:
    """Get a cleanup definition by ID."""
    for definition in CLEANUP_DEFINITIONS:
        if definition.id == action_id:
            return definition
    return None
