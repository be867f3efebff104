"""Load typed configuration from a YAML file and environment variables.

The loader finds the first file named ``filename`` among ordered search
directories, decodes it into a pydantic record in place and then overlays
environment variables bound to the record's fields::

    from pydantic import BaseModel, Field
    from hydraconf import Hydra, SearchConfig, hydra_field

    class Database(BaseModel):
        host: str = hydra_field("localhost", env="DB_HOST")

    class Settings(BaseModel):
        debug: bool = hydra_field(False, env="DEBUG")
        database: Database = Field(default_factory=Database)

    hydra = Hydra(SearchConfig(filename="config.yaml", paths=["/etc/app", "."]))
    settings = hydra.load(Settings())
"""

from .decode import read_and_parse
from .fields import FieldBinding, describe_bindings, get_tag, hydra_field, parse_tag
from .loader import Hydra, load, validate_record
from .overlay import apply_env, coerce
from .resolve import SearchConfig, find_config_path
from .utils.errors import (
    ConversionError,
    DecodeError,
    DestinationTypeError,
    FilesystemError,
    HydraError,
    PathResolutionError,
    UnsupportedTypeError,
    ValidationError,
)

__version__ = "0.1.0"

__all__ = [
    "ConversionError",
    "DecodeError",
    "DestinationTypeError",
    "FieldBinding",
    "FilesystemError",
    "Hydra",
    "HydraError",
    "PathResolutionError",
    "SearchConfig",
    "UnsupportedTypeError",
    "ValidationError",
    "apply_env",
    "coerce",
    "describe_bindings",
    "find_config_path",
    "get_tag",
    "hydra_field",
    "load",
    "parse_tag",
    "read_and_parse",
    "validate_record",
]
