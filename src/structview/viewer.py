"""Rendering configuration shared by all loaded structures."""

from collections.abc import Callable, Iterable
from typing import Any

from loguru import logger
from pydantic import field_validator

from .models import ColorScheme, FiniteFloat, FrozenModel, ViewMode
from .settings import ViewerSettings

MIN_ATOM_SIZE = 0.1
MAX_ATOM_SIZE = 2.0


class ViewerConfiguration(FrozenModel):
    """How the renderer draws the structures.

    `selected_residues` holds the residue ids highlighted on hover or click; it is transient
    and not tied to any structure.
    """

    view_mode: ViewMode = ViewMode.CARTOON
    color_scheme: ColorScheme = ColorScheme.DEFAULT
    atom_size: FiniteFloat = 1.0
    show_ligand: bool = True
    show_water_ion: bool = False
    selected_residues: frozenset[int] = frozenset()

    @field_validator("atom_size")
    @classmethod
    def clamp_atom_size(cls, value: float) -> float:
        return min(max(value, MIN_ATOM_SIZE), MAX_ATOM_SIZE)

    @classmethod
    def from_settings(cls, settings: ViewerSettings) -> "ViewerConfiguration":
        return cls.model_validate(settings.model_dump())


ConfigurationListener = Callable[[ViewerConfiguration], Any]


class ViewerController:
    """Holds the shared viewer configuration.

    Every setter is a merge-patch: only the given fields change. Unknown view modes or color
    schemes are rejected with a `ValueError` (pydantic `ValidationError`).
    """

    def __init__(self, configuration: ViewerConfiguration | None = None) -> None:
        self._initial = configuration or ViewerConfiguration()
        self._configuration = self._initial
        self._listeners: list[ConfigurationListener] = []

    @property
    def configuration(self) -> ViewerConfiguration:
        return self._configuration

    def subscribe(self, listener: ConfigurationListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def update(self, **patch: Any) -> ViewerConfiguration:
        """Changes the given fields of the configuration."""
        unknown = set(patch) - set(ViewerConfiguration.model_fields)
        if unknown:
            raise ValueError(f"unknown viewer configuration field(s): {', '.join(sorted(unknown))}")
        configuration = ViewerConfiguration.model_validate({**self._configuration.model_dump(), **patch})
        if configuration != self._configuration:
            self._configuration = configuration
            self._notify()
        return configuration

    def set_view_mode(self, view_mode: ViewMode | str) -> ViewerConfiguration:
        return self.update(view_mode=view_mode)

    def set_color_scheme(self, color_scheme: ColorScheme | str) -> ViewerConfiguration:
        return self.update(color_scheme=color_scheme)

    def set_atom_size(self, atom_size: float) -> ViewerConfiguration:
        return self.update(atom_size=atom_size)

    def set_visibility(self, *, ligand: bool | None = None, water_ion: bool | None = None) -> ViewerConfiguration:
        patch = {}
        if ligand is not None:
            patch["show_ligand"] = ligand
        if water_ion is not None:
            patch["show_water_ion"] = water_ion
        return self.update(**patch)

    def highlight_residues(self, residue_ids: Iterable[int]) -> ViewerConfiguration:
        return self.update(selected_residues=frozenset(residue_ids))

    def clear_highlight(self) -> ViewerConfiguration:
        return self.update(selected_residues=frozenset())

    def reset(self) -> ViewerConfiguration:
        """Restores the configuration the controller was created with."""
        if self._configuration != self._initial:
            self._configuration = self._initial
            self._notify()
        return self._configuration

    def _notify(self):
        for listener in list(self._listeners):
            try:
                listener(self._configuration)
            except Exception:
                logger.exception(f"Viewer configuration listener {listener!r} failed")
