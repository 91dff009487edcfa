"""
Body catalog loading.

Reads static body definitions (orbital elements, secular rates, period and
spin) from CSV files and validates them before any propagation begins.
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

import numpy as np
import pandas as pd
import astropy.units as u

from ..config import (
    AVAILABLE_BODY_TYPES,
    AVAILABLE_RATE_UNITS,
    CATALOG_ELEMENT_COLUMNS,
    CATALOG_OPTIONAL_DEFAULTS,
    CATALOG_RATE_SUFFIX,
    CATALOG_REQUIRED_COLUMNS,
    DEFAULT_RATE_UNIT,
    ENCODING_FALLBACK_ORDER,
    RATE_UNIT_CENTURY
)
from ..exceptions import CatalogError, ConfigurationError
from ..physics.elements import OrbitalElements, SecularRates, mean_motion, validate_elements

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class BodyDefinition:
    """Static configuration of one body, as loaded from a catalog."""
    name: str
    elements: OrbitalElements
    orbital_period: float                       # days
    rates: SecularRates = field(default_factory=SecularRates)
    type: str = 'planet'
    rotation_speed: float = 0.0                 # rad per real second
    rotation_axis: Tuple[float, float, float] = (0.0, 1.0, 0.0)

    @property
    def mean_motion(self) -> float:
        return mean_motion(self.orbital_period)


def validate_definition(definition: BodyDefinition) -> BodyDefinition:
    """
    Validates a body definition.

    Raises:
        ConfigurationError: If elements, period or type are outside their domain.
    """
    try:
        validate_elements(definition.elements)
        mean_motion(definition.orbital_period)
    except ConfigurationError as e:
        raise ConfigurationError(f"Body '{definition.name}': {e}") from e

    if definition.type not in AVAILABLE_BODY_TYPES:
        raise ConfigurationError(f"Body '{definition.name}': unknown type '{definition.type}' "
                                 f"(expected one of {AVAILABLE_BODY_TYPES})")
    return definition


def rate_conversion_factor(rate_unit: str) -> float:
    """Factor converting catalog rates into rates per simulated day."""
    if rate_unit not in AVAILABLE_RATE_UNITS:
        raise CatalogError(f"Unknown rate unit '{rate_unit}' (expected one of {AVAILABLE_RATE_UNITS})")
    if rate_unit == RATE_UNIT_CENTURY:
        return (1 / u.cy).to(1 / u.day).value
    return 1.0


def read_catalog_csv(filepath: str) -> pd.DataFrame:
    """
    Reads a catalog CSV with encoding fallback.

    Raises:
        CatalogError: If the file is missing, unparsable or lacks required columns.
    """
    last_error = None
    for encoding in ENCODING_FALLBACK_ORDER:
        try:
            log.debug(f"Attempting to read catalog with encoding: {encoding}")
            df = pd.read_csv(filepath, encoding=encoding, comment='#', skipinitialspace=True)
            break
        except FileNotFoundError:
            raise CatalogError(f"File not found: {filepath}")
        except UnicodeDecodeError as e:
            last_error = e
            continue
        except (pd.errors.ParserError, pd.errors.EmptyDataError) as e:
            raise CatalogError(f"Could not parse catalog {filepath}: {e}") from e
    else:
        raise CatalogError(f"Could not decode catalog {filepath}: {last_error}")

    missing = [col for col in CATALOG_REQUIRED_COLUMNS if col not in df.columns]
    if missing:
        raise CatalogError(f"Catalog {filepath} is missing required columns: {', '.join(missing)}")

    log.info(f"Catalog loaded successfully. Bodies: {len(df)}")
    return df


def _row_to_definition(row: pd.Series, rate_factor: float) -> BodyDefinition:
    def value(column: str, default: float = 0.0) -> float:
        raw = row.get(column, default)
        return default if pd.isna(raw) else float(raw)

    elements = OrbitalElements(*(value(col) for col in CATALOG_ELEMENT_COLUMNS))
    rates = SecularRates(*(value(col + CATALOG_RATE_SUFFIX) for col in CATALOG_ELEMENT_COLUMNS))

    body_type = row.get('type', CATALOG_OPTIONAL_DEFAULTS['type'])
    if pd.isna(body_type):
        body_type = CATALOG_OPTIONAL_DEFAULTS['type']

    return BodyDefinition(
        name=str(row['name']).strip(),
        elements=elements,
        orbital_period=value('orbital_period', np.nan),
        rates=rates.scaled(rate_factor),
        type=str(body_type).strip(),
        rotation_speed=value('rotation_speed', CATALOG_OPTIONAL_DEFAULTS['rotation_speed']),
        rotation_axis=(
            value('rotation_axis_x', CATALOG_OPTIONAL_DEFAULTS['rotation_axis_x']),
            value('rotation_axis_y', CATALOG_OPTIONAL_DEFAULTS['rotation_axis_y']),
            value('rotation_axis_z', CATALOG_OPTIONAL_DEFAULTS['rotation_axis_z']),
        ),
    )


def definitions_from_dataframe(df: pd.DataFrame, rate_unit: Optional[str] = None) -> List[BodyDefinition]:
    """
    Builds validated body definitions from a catalog DataFrame.

    Raises:
        ConfigurationError: If any body is outside the valid domain.
        CatalogError: If the rate unit is unknown or names are duplicated.
    """
    rate_unit = rate_unit if rate_unit is not None else DEFAULT_RATE_UNIT
    factor = rate_conversion_factor(rate_unit)

    duplicated = df['name'][df['name'].duplicated()].tolist()
    if duplicated:
        raise CatalogError(f"Duplicated body names in catalog: {', '.join(map(str, duplicated))}")

    definitions = [validate_definition(_row_to_definition(row, factor)) for _, row in df.iterrows()]
    log.debug(f"Built {len(definitions)} body definitions (rates per {rate_unit})")
    return definitions


def load_catalog(filepath: str, rate_unit: Optional[str] = None) -> List[BodyDefinition]:
    """Loads and validates every body in a catalog CSV."""
    return definitions_from_dataframe(read_catalog_csv(filepath), rate_unit)
