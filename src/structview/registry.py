"""The registry of loaded structures.

The registry owns three pieces of state: the list of loaded structures, the uploaded file
bindings and the selection (an index into the structure list). Consumers (3D view, sequence
view, statistics panel...) receive the registry explicitly and read it, or subscribe to
immutable snapshots of it.

Every mutating operation builds the new state aside and commits it in one assignment, so
that no reader can observe an intermediate state. Operations never raise on a stale
reference (unknown id, out of range index): they are called from asynchronous completions
which may refer to entries that are gone already, so such calls are no-ops.

Selection invariant: the selection is None if and only if there is no structure, otherwise
it is a valid index into the structure list.
"""

from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass
from typing import Any

from loguru import logger

from .models import FileBinding, Molecule, Structure, StructureMetadata, StructureSource


@dataclass(frozen=True)
class RegistrySnapshot:
    """Immutable view of the registry state at a given time."""

    structures: tuple[Structure, ...] = ()
    files: tuple[FileBinding, ...] = ()
    selection: int | None = None

    @property
    def selected(self) -> Structure | None:
        if self.selection is None:
            return None
        return self.structures[self.selection]


Listener = Callable[[RegistrySnapshot], Any]


def selection_after_removal(selection: int | None, removed_index: int, remaining: int) -> int | None:
    """Returns the selection after the entry at `removed_index` was removed from a list.

    Args:
        selection: selection before the removal.
        removed_index: index of the removed entry.
        remaining: length of the list after the removal.
    """
    if remaining == 0:
        return None
    if selection is None or selection == removed_index:
        return 0
    if selection > removed_index:
        return selection - 1
    return selection


def normalized_selection(selection: int | None, count: int) -> int | None:
    """Returns a selection that satisfies the invariant for a list of `count` structures."""
    if count == 0:
        return None
    if selection is None or not 0 <= selection < count:
        return 0
    return selection


class StructureRegistry:
    """Owner of the loaded structures, the uploaded files and the selection."""

    def __init__(self) -> None:
        self._structures: tuple[Structure, ...] = ()
        # Keyed by the structure id assigned when the file was uploaded; insertion ordered.
        self._files: dict[str, FileBinding] = {}
        self._selection: int | None = None
        self._listeners: list[Listener] = []

    # ------------------------------------------------------------------------------------------
    # Read access.

    @property
    def structures(self) -> tuple[Structure, ...]:
        return self._structures

    @property
    def files(self) -> tuple[FileBinding, ...]:
        return tuple(self._files.values())

    @property
    def selection(self) -> int | None:
        return self._selection

    def __len__(self) -> int:
        return len(self._structures)

    def __contains__(self, structure_id: object) -> bool:
        return self.contains(structure_id)

    def contains(self, structure_id: object) -> bool:
        """Returns True if a structure with this id is loaded."""
        return any(structure.id == structure_id for structure in self._structures)

    def get(self, structure_id: str) -> Structure | None:
        index = self._index_of(structure_id)
        return None if index is None else self._structures[index]

    def get_file(self, structure_id: str) -> FileBinding | None:
        return self._files.get(structure_id)

    def get_selected(self) -> Structure | None:
        """Returns the selected structure, if any."""
        if self._selection is None:
            return None
        return self._structures[self._selection]

    def snapshot(self) -> RegistrySnapshot:
        return RegistrySnapshot(structures=self._structures, files=self.files, selection=self._selection)

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Registers a function called with a new snapshot after each change.

        Returns:
            A function which unsubscribes the listener.
        """
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    # ------------------------------------------------------------------------------------------
    # Structures.

    def add_structures(self, items: Iterable[Structure]) -> list[Structure]:
        """Appends structures whose id is not loaded yet.

        When several items share an id, the first one wins. A still valid selection is left
        untouched.

        Returns:
            The structures which were actually added.
        """
        added = self._new_structures(items)
        if not added:
            return []
        structures = self._structures + tuple(added)
        self._commit(structures, self._files, normalized_selection(self._selection, len(structures)))
        logger.debug(f"Added {len(added)} structure(s): {', '.join(s.id for s in added)}")
        return added

    def remove_structure_by_id(self, structure_id: str) -> bool:
        """Removes a structure.

        Returns:
            False if no structure has this id (nothing changes), True otherwise.
        """
        index = self._index_of(structure_id)
        if index is None:
            logger.debug(f"Ignoring removal of unknown structure {structure_id!r}")
            return False
        structures = self._structures[:index] + self._structures[index + 1 :]
        self._commit(structures, self._files, selection_after_removal(self._selection, index, len(structures)))
        logger.debug(f"Removed structure {structure_id!r}")
        return True

    def update_metadata(self, structure_id: str, metadata: StructureMetadata | Mapping[str, Any]) -> bool:
        """Merges metadata fields into a structure's metadata.

        Only the fields set on `metadata` change; other structures are untouched.

        Raises:
            pydantic.ValidationError: `metadata` is a mapping which is not valid metadata for
                a loaded structure. Nothing changes in that case.

        Returns:
            False if no structure has this id, True otherwise.
        """
        index = self._index_of(structure_id)
        if index is None:
            logger.debug(f"Ignoring metadata update of unknown structure {structure_id!r}")
            return False
        if not isinstance(metadata, StructureMetadata):
            metadata = StructureMetadata.model_validate(metadata)
        current = self._structures[index]
        merged = (current.metadata or StructureMetadata()).merge(metadata)
        self._replace(index, current.model_copy(update={"metadata": merged}))
        return True

    def attach_molecule(self, structure_id: str, molecule: Molecule) -> bool:
        """Sets the parsed molecule of a loaded structure and of its file binding.

        Returns:
            False if the structure is not loaded anymore (the molecule is discarded).
        """
        index = self._index_of(structure_id)
        if index is None:
            logger.debug(f"Discarding molecule of unknown structure {structure_id!r}")
            return False
        structures = list(self._structures)
        structures[index] = structures[index].model_copy(update={"molecule": molecule})
        files = dict(self._files)
        if structure_id in files:
            files[structure_id] = files[structure_id].model_copy(update={"molecule": molecule})
        self._commit(tuple(structures), files, self._selection)
        return True

    # ------------------------------------------------------------------------------------------
    # Selection.

    def select(self, index: int) -> bool:
        """Selects the structure at `index`; out of range indices are ignored."""
        if not 0 <= index < len(self._structures):
            logger.debug(f"Ignoring selection of out of range index {index}")
            return False
        if index != self._selection:
            self._commit(self._structures, self._files, index)
        return True

    def select_by_id(self, structure_id: str) -> bool:
        index = self._index_of(structure_id)
        if index is None:
            logger.debug(f"Ignoring selection of unknown structure {structure_id!r}")
            return False
        return self.select(index)

    # ------------------------------------------------------------------------------------------
    # Uploaded files.

    def add_files(self, bindings: Iterable[FileBinding]) -> list[FileBinding]:
        """Adds file bindings whose structure id is not bound yet (first occurrence wins)."""
        files = dict(self._files)
        added = []
        for binding in bindings:
            if binding.structure_id in files:
                logger.debug(f"Ignoring duplicate file binding {binding.structure_id!r}")
                continue
            files[binding.structure_id] = binding
            added.append(binding)
        if added:
            self._commit(self._structures, files, self._selection)
        return added

    def add_uploads(self, uploads: Iterable[tuple[FileBinding, Structure]]) -> list[Structure]:
        """Adds file bindings and their structures in a single step.

        An upload whose structure id is already loaded or bound is dropped as a whole.

        Returns:
            The structures which were added.
        """
        files = dict(self._files)
        loaded = {structure.id for structure in self._structures}
        added = []
        for binding, structure in uploads:
            if binding.structure_id != structure.id:
                logger.warning(
                    f"Ignoring upload {binding.file_name!r}: file bound to {binding.structure_id!r},"
                    f" structure is {structure.id!r}"
                )
                continue
            if structure.id in loaded or structure.id in files:
                logger.debug(f"Ignoring duplicate upload {structure.id!r}")
                continue
            files[structure.id] = binding
            loaded.add(structure.id)
            added.append(structure)
        if not added:
            return []
        structures = self._structures + tuple(added)
        self._commit(structures, files, normalized_selection(self._selection, len(structures)))
        return added

    def delete_file_at(self, index: int) -> bool:
        """Removes the file binding at `index` and the file-sourced structure it correlates to.

        The structure is found by the identity the file was bound to, never by position.

        Returns:
            False if `index` is out of range (nothing changes), True otherwise.
        """
        bindings = list(self._files.values())
        if not 0 <= index < len(bindings):
            logger.warning(f"Invalid file index to delete: {index}")
            return False

        binding = bindings[index]
        files = {key: value for key, value in self._files.items() if key != binding.structure_id}

        structure_index = self._index_of(binding.structure_id, source=StructureSource.FILE)
        if structure_index is None:
            logger.warning(f"Deleted file {binding.file_name!r} had no corresponding structure")
            selection = selection_after_removal(self._selection, index, len(files))
            self._commit(self._structures, files, normalized_selection(selection, len(self._structures)))
            return True

        structures = self._structures[:structure_index] + self._structures[structure_index + 1 :]
        selection = selection_after_removal(self._selection, structure_index, len(structures))
        self._commit(structures, files, selection)
        logger.debug(f"Deleted file {binding.file_name!r} and structure {binding.structure_id!r}")
        return True

    # ------------------------------------------------------------------------------------------
    # Private.

    def _index_of(self, structure_id: object, source: StructureSource | None = None) -> int | None:
        for index, structure in enumerate(self._structures):
            if structure.id == structure_id and (source is None or structure.source == source):
                return index
        return None

    def _new_structures(self, items: Iterable[Structure]) -> list[Structure]:
        """Returns the items whose id is neither loaded nor repeated earlier in `items`."""
        known = {structure.id for structure in self._structures}
        new = []
        for item in items:
            if item.id in known:
                logger.debug(f"Ignoring structure with duplicate id {item.id!r}")
                continue
            known.add(item.id)
            new.append(item)
        return new

    def _replace(self, index: int, structure: Structure):
        structures = self._structures[:index] + (structure,) + self._structures[index + 1 :]
        self._commit(structures, self._files, self._selection)

    def _commit(self, structures: tuple[Structure, ...], files: dict[str, FileBinding], selection: int | None):
        self._structures, self._files, self._selection = structures, files, selection
        self._notify()

    def _notify(self):
        if not self._listeners:
            return
        snapshot = self.snapshot()
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception:
                logger.exception(f"Registry listener {listener!r} failed")
