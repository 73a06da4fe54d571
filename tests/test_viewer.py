"""Unit tests for structview.viewer module."""

from unittest.mock import Mock

import pytest
from pydantic import ValidationError

from structview.models import ColorScheme, ViewMode
from structview.settings import ViewerSettings
from structview.viewer import MAX_ATOM_SIZE, MIN_ATOM_SIZE, ViewerConfiguration, ViewerController


@pytest.fixture
def controller() -> ViewerController:
    return ViewerController()


class TestViewerConfiguration:
    def test_defaults(self):
        configuration = ViewerConfiguration()
        assert configuration.view_mode == ViewMode.CARTOON
        assert configuration.color_scheme == ColorScheme.DEFAULT
        assert configuration.atom_size == 1.0
        assert configuration.show_ligand is True
        assert configuration.show_water_ion is False
        assert configuration.selected_residues == frozenset()

    @pytest.mark.parametrize(
        "value, expected",
        [(0.0, MIN_ATOM_SIZE), (-3.0, MIN_ATOM_SIZE), (0.5, 0.5), (2.0, 2.0), (10.0, MAX_ATOM_SIZE)],
    )
    def test_atom_size_is_clamped(self, value, expected):
        assert ViewerConfiguration(atom_size=value).atom_size == expected

    @pytest.mark.parametrize("value", [float("nan"), float("inf")])
    def test_non_finite_atom_size(self, value):
        with pytest.raises(ValidationError):
            ViewerConfiguration(atom_size=value)

    def test_from_settings(self):
        settings = ViewerSettings(view_mode=ViewMode.SPACEFILL, atom_size=5.0, show_water_ion=True)
        configuration = ViewerConfiguration.from_settings(settings)
        assert configuration.view_mode == ViewMode.SPACEFILL
        assert configuration.atom_size == MAX_ATOM_SIZE
        assert configuration.show_water_ion is True

    def test_is_frozen(self):
        configuration = ViewerConfiguration()
        with pytest.raises(ValidationError):
            configuration.atom_size = 1.5


class TestViewerController:
    def test_set_view_mode(self, controller):
        controller.set_view_mode("spacefill")
        assert controller.configuration.view_mode == ViewMode.SPACEFILL

    def test_set_color_scheme(self, controller):
        controller.set_color_scheme(ColorScheme.BFACTOR)
        assert controller.configuration.color_scheme == ColorScheme.BFACTOR

    def test_merge_patch_leaves_other_fields(self, controller):
        controller.set_color_scheme("chain")
        controller.set_atom_size(1.5)
        controller.set_view_mode("licorice")
        configuration = controller.configuration
        assert configuration.color_scheme == ColorScheme.CHAIN
        assert configuration.atom_size == 1.5
        assert configuration.view_mode == ViewMode.LICORICE

    def test_set_atom_size_is_clamped(self, controller):
        assert controller.set_atom_size(3.0).atom_size == MAX_ATOM_SIZE
        assert controller.set_atom_size(0.01).atom_size == MIN_ATOM_SIZE

    def test_invalid_view_mode(self, controller):
        with pytest.raises(ValueError):
            controller.set_view_mode("wireframe")
        assert controller.configuration == ViewerConfiguration()

    def test_invalid_color_scheme(self, controller):
        with pytest.raises(ValueError):
            controller.set_color_scheme("rainbow")
        assert controller.configuration.color_scheme == ColorScheme.DEFAULT

    def test_unknown_field(self, controller):
        with pytest.raises(ValueError, match="opacity"):
            controller.update(opacity=0.5)

    def test_set_visibility(self, controller):
        controller.set_visibility(water_ion=True)
        assert controller.configuration.show_water_ion is True
        assert controller.configuration.show_ligand is True
        controller.set_visibility(ligand=False)
        assert controller.configuration.show_ligand is False
        assert controller.configuration.show_water_ion is True

    def test_highlight_residues(self, controller):
        controller.highlight_residues([3, 1, 3])
        assert controller.configuration.selected_residues == {1, 3}
        controller.clear_highlight()
        assert controller.configuration.selected_residues == frozenset()

    def test_reset(self, controller):
        controller.set_view_mode("surface")
        controller.highlight_residues([1])
        assert controller.reset() == ViewerConfiguration()

    def test_reset_to_initial_configuration(self):
        initial = ViewerConfiguration(view_mode=ViewMode.SPACEFILL)
        controller = ViewerController(initial)
        controller.set_view_mode("cartoon")
        assert controller.reset() is initial


class TestListeners:
    def test_notified_on_change(self, controller):
        listener = Mock()
        controller.subscribe(listener)
        controller.set_view_mode("spacefill")
        listener.assert_called_once_with(controller.configuration)

    def test_not_notified_without_change(self, controller):
        listener = Mock()
        controller.subscribe(listener)
        controller.set_view_mode("cartoon")
        controller.set_visibility()
        controller.reset()
        listener.assert_not_called()

    def test_not_notified_on_invalid_update(self, controller):
        listener = Mock()
        controller.subscribe(listener)
        with pytest.raises(ValueError):
            controller.set_color_scheme("rainbow")
        listener.assert_not_called()

    def test_unsubscribe(self, controller):
        listener = Mock()
        unsubscribe = controller.subscribe(listener)
        unsubscribe()
        controller.set_view_mode("spacefill")
        listener.assert_not_called()

    def test_failing_listener(self, controller):
        controller.subscribe(Mock(side_effect=RuntimeError("boom")))
        other = Mock()
        controller.subscribe(other)
        controller.set_atom_size(0.5)
        assert controller.configuration.atom_size == 0.5
        other.assert_called_once()
