"""Asynchronous loading of structures into a registry.

File reading, parsing and distogram computation run in worker threads. Each result is
applied to the registry in one operation, addressed by the identity of the structure it
belongs to. Several loads may be in flight at the same time and complete in any order.

There is no cancellation: when a structure is removed while work for it is still running,
the late result is discarded because the registry does not know the structure anymore.
"""

import asyncio
from collections.abc import Callable, Iterable, Mapping
from datetime import datetime
from pathlib import Path
from typing import Any

from loguru import logger
from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from ._typing import PathLike
from .analytics import distogram
from .io import decode_structure_bytes, read_structure_text
from .models import FileBinding, Structure, StructureMetadata, StructureSource, file_structure_id
from .parser import is_local_format, parse_structure_text, strip_extension
from .registry import StructureRegistry
from .settings import Settings, get_settings

METADATA_FIELDS = {"distogram", "plddt_score", "created_at", "completed_at", "error_message", "user_id"}


class ServiceDistogram(BaseModel):
    """Distogram as sent by the prediction service: a distance matrix and its binning."""

    model_config = ConfigDict(extra="ignore")

    distance_matrix: list[list[float]]
    bin_edges: list[float] = []
    max_distance: float | None = None
    num_bins: int | None = None


class JobResult(BaseModel):
    """A prediction job as returned by the prediction service.

    The service names (`job_name`, `pdb_content`) are accepted as aliases. The distogram may
    be a bare matrix or the service object, of which only the distance matrix is kept.
    """

    model_config = ConfigDict(extra="ignore")

    job_id: str
    name: str | None = Field(default=None, validation_alias=AliasChoices("name", "job_name"))
    status: str | None = None
    model: str | None = None
    pdb_data: str | None = Field(default=None, validation_alias=AliasChoices("pdb_data", "pdb_content"))
    distogram: list[list[float]] | None = None
    plddt_score: float | None = None
    created_at: datetime | None = None
    completed_at: datetime | None = None
    error_message: str | None = None
    user_id: str | None = None

    @field_validator("distogram", mode="before")
    @classmethod
    def distance_matrix_of_service_distogram(cls, value: Any) -> Any:
        if isinstance(value, Mapping):
            return ServiceDistogram.model_validate(value).distance_matrix
        return value

    def metadata(self) -> StructureMetadata:
        """Returns the structure metadata carried by the job (only the fields the service sent)."""
        return StructureMetadata.model_validate(self.model_dump(include=METADATA_FIELDS, exclude_unset=True))


class StructureLoader:
    """Loads uploaded files and job results into a `StructureRegistry`."""

    def __init__(
        self,
        registry: StructureRegistry,
        settings: Settings | None = None,
        now: Callable[[], datetime] = datetime.now,
    ) -> None:
        self._registry = registry
        self._settings = settings or get_settings()
        self._now = now

    @property
    def registry(self) -> StructureRegistry:
        return self._registry

    async def load_file(self, path: PathLike) -> Structure | None:
        """Reads, registers and parses a structure file.

        Raises:
            StructureReadError: the file cannot be read or decoded. Nothing is registered.

        Returns:
            The structure as registered once loading is over, or None if it was removed
            from the registry in the meantime.
        """
        path = Path(path)
        text = await asyncio.to_thread(read_structure_text, path)
        return await self._load_text(text, path.name, path)

    async def load_upload(self, file_name: str, data: bytes) -> Structure | None:
        """Same as `load_file` for the content of an uploaded file."""
        text = decode_structure_bytes(data, file_name)
        return await self._load_text(text, file_name)

    async def load_files(self, paths: Iterable[PathLike]) -> list[Structure]:
        """Loads several files concurrently.

        Files which cannot be read are logged and skipped.

        Returns:
            The structures which are still loaded once their own load is over.
        """
        paths = list(paths)
        results = await asyncio.gather(*(self.load_file(path) for path in paths), return_exceptions=True)
        return self._collect(paths, results)

    async def load_uploads(self, uploads: Iterable[tuple[str, bytes]]) -> list[Structure]:
        """Loads several uploaded files concurrently (see `load_files`)."""
        uploads = list(uploads)
        results = await asyncio.gather(
            *(self.load_upload(name, data) for name, data in uploads), return_exceptions=True
        )
        return self._collect([name for name, _ in uploads], results)

    async def attach_distogram(self, structure_id: str) -> bool:
        """Computes the distogram of a loaded structure and stores it in its metadata.

        Returns:
            False if the structure has no molecule, or was removed before the computation
            was over.
        """
        structure = self._registry.get(structure_id)
        if structure is None or structure.molecule is None:
            return False
        method = self._settings.analytics.distogram_method
        matrix = await asyncio.to_thread(distogram, structure.molecule, method)
        if not self._registry.update_metadata(structure_id, StructureMetadata(distogram=matrix.tolist())):
            logger.debug(f"Discarding distogram of removed structure {structure_id!r}")
            return False
        return True

    async def apply_job_result(self, job: JobResult | Mapping[str, Any]) -> Structure | None:
        """Registers a job result, or merges its metadata if the job is loaded already.

        The structure id is the job id. The job structure is parsed when the job carries
        structure data.

        Returns:
            The structure as registered, or None if it was removed in the meantime.
        """
        if not isinstance(job, JobResult):
            job = JobResult.model_validate(job)

        metadata = job.metadata()
        if self._registry.contains(job.job_id):
            self._registry.update_metadata(job.job_id, metadata)
            return self._registry.get(job.job_id)

        structure = Structure(
            id=job.job_id,
            source=StructureSource.JOB,
            name=job.name or job.job_id,
            raw=job.pdb_data or "",
            metadata=metadata,
            parse_locally=bool(job.pdb_data),
        )
        self._registry.add_structures([structure])
        logger.info(f"Loaded job {job.job_id!r}")

        if job.pdb_data:
            molecule = await asyncio.to_thread(parse_structure_text, job.pdb_data, job.job_id)
            if not self._registry.attach_molecule(job.job_id, molecule):
                logger.debug(f"Discarding molecule of removed job {job.job_id!r}")
                return None
            if job.distogram is None and self._settings.analytics.compute_distogram_on_load:
                await self.attach_distogram(job.job_id)

        return self._registry.get(job.job_id)

    async def _load_text(self, text: str, file_name: str, path: Path | None = None) -> Structure | None:
        extensions = self._settings.parser.local_extensions
        created_at = self._now()
        parse_locally = is_local_format(file_name, extensions)

        structure = Structure(
            id=file_structure_id(file_name, created_at),
            source=StructureSource.FILE,
            name=strip_extension(file_name, extensions),
            raw=text,
            metadata=StructureMetadata(created_at=created_at),
            parse_locally=parse_locally,
        )
        binding = FileBinding(structure_id=structure.id, file_name=file_name, path=path)
        if not self._registry.add_uploads([(binding, structure)]):
            logger.warning(f"Structure {structure.id!r} is already loaded")
            return self._registry.get(structure.id)
        logger.info(f"Loaded {file_name}")

        if not parse_locally:
            logger.debug(f"{file_name}: not parsed locally, passed to the renderer as is")
            return self._registry.get(structure.id)

        molecule = await asyncio.to_thread(parse_structure_text, text, file_name, extensions)
        if not self._registry.attach_molecule(structure.id, molecule):
            logger.debug(f"Discarding molecule of removed structure {structure.id!r}")
            return None

        if self._settings.analytics.compute_distogram_on_load:
            await self.attach_distogram(structure.id)

        return self._registry.get(structure.id)

    def _collect(self, names: list[Any], results: list[Any]) -> list[Structure]:
        loaded = []
        for name, result in zip(names, results):
            if isinstance(result, Exception):
                logger.error(f"Failed to load {name}: {result}")
            elif isinstance(result, BaseException):
                raise result
            elif result is not None:
                loaded.append(result)
        if names and not loaded:
            logger.error("No file was loaded successfully")
        return loaded
