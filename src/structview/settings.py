from functools import lru_cache

from pydantic import BaseModel
from pydantic_settings import BaseSettings, SettingsConfigDict

from .models import ColorScheme, DistogramMethod, ViewMode


class ParserSettings(BaseModel):
    # Files with other extensions are not parsed locally and go to the renderer as is.
    local_extensions: list[str] = [".pdb", ".ent"]


class AnalyticsSettings(BaseModel):
    distogram_method: DistogramMethod = DistogramMethod.REPRESENTATIVE
    compute_distogram_on_load: bool = True


class ViewerSettings(BaseModel):
    view_mode: ViewMode = ViewMode.CARTOON
    color_scheme: ColorScheme = ColorScheme.DEFAULT
    atom_size: float = 1.0
    show_ligand: bool = True
    show_water_ion: bool = False


class Settings(BaseSettings):
    """Application settings.

    Values can be overridden from the environment, e.g.
    `STRUCTVIEW_ANALYTICS__DISTOGRAM_METHOD=minimum` or `STRUCTVIEW_DEBUG=1`.
    """

    model_config = SettingsConfigDict(env_prefix="STRUCTVIEW_", env_nested_delimiter="__")

    parser: ParserSettings = ParserSettings()
    analytics: AnalyticsSettings = AnalyticsSettings()
    viewer: ViewerSettings = ViewerSettings()

    debug: bool = False


@lru_cache()
def get_settings() -> Settings:
    return Settings()
