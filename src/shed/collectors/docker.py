"""Docker images, containers, volumes and build cache."""

import json
import logging
import re
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from shed.models import NO_VALUE, DockerContainer, DockerData, DockerImage, DockerVolume
from shed.pool import BoundedPool
from shed.probe import run

log = logging.getLogger(__name__)

LIVENESS_TIMEOUT = 10.0

_SIZE_PATTERN = re.compile(r"^\s*([\d.]+)\s*(TB|GB|MB|KB|B)\b", re.IGNORECASE)
_SIZE_MULTIPLIERS = {
    "B": 1,
    "KB": 1024,
    "MB": 1024**2,
    "GB": 1024**3,
    "TB": 1024**4,
}
_DF_TYPES = ("Images", "Containers", "Local Volumes", "Build Cache")
BUILD_CACHE_ROW = "Build Cache"


def parse_docker_size(size_str: Optional[str]) -> int:
    """
    Parse a Docker size string like ``1.5GB`` or ``512 kB`` to bytes.

    Unknown or empty strings parse to 0.
    """
    if not size_str:
        return 0
    match = _SIZE_PATTERN.match(size_str)
    if not match:
        return 0
    try:
        value = float(match.group(1))
    except ValueError:
        return 0
    return int(value * _SIZE_MULTIPLIERS[match.group(2).upper()])


def format_docker_size(size_bytes: int) -> str:
    """Format bytes the way the Docker CLI does (no space before the unit)."""
    if size_bytes < 1024:
        return f"{size_bytes}B"
    if size_bytes < 1024**2:
        return f"{size_bytes / 1024:.1f}KB"
    if size_bytes < 1024**3:
        return f"{size_bytes / 1024**2:.1f}MB"
    return f"{size_bytes / 1024**3:.1f}GB"


# =============================================================================
# Raw CLI records, validated at the parse boundary
# =============================================================================


class _ImageRecord(BaseModel):
    model_config = ConfigDict(extra="ignore")

    repository: str = Field(alias="Repository")
    tag: str = Field("", alias="Tag")
    id: str = Field("", alias="ID")
    size: str = Field(NO_VALUE, alias="Size")


class _ContainerRecord(BaseModel):
    model_config = ConfigDict(extra="ignore")

    names: str = Field(alias="Names")
    image: str = Field("", alias="Image")
    state: str = Field("", alias="State")
    size: str = Field(NO_VALUE, alias="Size")


class _VolumeRecord(BaseModel):
    model_config = ConfigDict(extra="ignore")

    name: str = Field(alias="Name")
    driver: str = Field("local", alias="Driver")


def _json_lines(output: str, record_type: type[BaseModel]) -> list:
    records = []
    for line in output.splitlines():
        line = line.strip()
        if not line:
            continue
        try:
            records.append(record_type.model_validate(json.loads(line)))
        except (json.JSONDecodeError, ValidationError) as e:
            log.debug("Skipping malformed docker record %r: %s", line[:80], e)
    return records


def parse_images(output: str) -> list[DockerImage]:
    """Parse ``docker images --format {{json .}}``, largest first."""
    images = [
        DockerImage(
            repository=r.repository,
            tag=r.tag,
            id=r.id,
            size_str=r.size,
            size_bytes=parse_docker_size(r.size),
        )
        for r in _json_lines(output, _ImageRecord)
    ]
    images.sort(key=lambda i: i.size_bytes, reverse=True)
    return images


def parse_containers(output: str) -> list[DockerContainer]:
    """Parse ``docker ps -a --format {{json .}}``."""
    return [
        DockerContainer(name=r.names, image=r.image, state=r.state, size_str=r.size or NO_VALUE)
        for r in _json_lines(output, _ContainerRecord)
    ]


def parse_volumes(output: str) -> list[DockerVolume]:
    """Parse ``docker volume ls --format {{json .}}``."""
    return [DockerVolume(name=r.name, driver=r.driver) for r in _json_lines(output, _VolumeRecord)]


class SystemDf(BaseModel):
    """Figures taken from ``docker system df``."""

    build_cache_size_str: str = NO_VALUE
    build_cache_reclaimable_str: str = NO_VALUE
    total_size_str: str = NO_VALUE
    reclaimable_size_str: str = NO_VALUE


def parse_system_df(output: str) -> SystemDf:
    """
    Parse the ``docker system df`` table.

    Rows are split on runs of two or more spaces into
    TYPE, TOTAL, ACTIVE, SIZE, RECLAIMABLE. The reclaimable column keeps
    only its size token (the percentage suffix is dropped).
    """
    result = SystemDf()
    total_bytes = 0
    reclaimable_bytes = 0

    for line in output.splitlines():
        if not line.startswith(_DF_TYPES):
            continue
        parts = [p for p in re.split(r"\s{2,}", line.strip()) if p]
        if len(parts) < 5:
            continue
        row_type, size_str = parts[0], parts[3]
        reclaimable_str = parts[4].split()[0]

        if row_type == BUILD_CACHE_ROW:
            result.build_cache_size_str = size_str
            result.build_cache_reclaimable_str = reclaimable_str
        total_bytes += parse_docker_size(size_str)
        reclaimable_bytes += parse_docker_size(reclaimable_str)

    if total_bytes > 0:
        result.total_size_str = format_docker_size(total_bytes)
        result.reclaimable_size_str = format_docker_size(reclaimable_bytes)
    return result


def is_docker_online() -> bool:
    """Whether the Docker daemon answers ``docker info`` within a short timeout."""
    return bool(run("docker", ["info", "--format", "{{.ID}}"], timeout=LIVENESS_TIMEOUT).strip())


def collect_docker() -> DockerData:
    """
    Inventory Docker objects.

    Linked-project fields are left empty; the linker fills them in.

    Returns:
        DockerData, with online=False and empty collections when the
        daemon is unreachable
    """
    if not is_docker_online():
        log.info("Docker is not running")
        return DockerData(online=False)

    commands = [
        ["images", "--format", "{{json .}}"],
        ["ps", "-a", "--format", "{{json .}}"],
        ["volume", "ls", "--format", "{{json .}}"],
        ["system", "df"],
    ]
    images_out, containers_out, volumes_out, df_out = BoundedPool(len(commands)).map(
        lambda args: run("docker", args), commands, default=""
    )

    df = parse_system_df(df_out)
    return DockerData(
        online=True,
        images=parse_images(images_out),
        containers=parse_containers(containers_out),
        volumes=parse_volumes(volumes_out),
        **df.model_dump(),
    )
