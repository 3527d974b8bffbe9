"""
Ingredient sources report: column layout, rows and the report wrapper.
"""

from collections import OrderedDict
from datetime import datetime
from typing import Any, List, Optional

import pandas as pd

from .models import LocationResult

PRODUCT_EPC = 'productEPC'
PRODUCT_NAME = 'productName'
PRODUCT_GTIN = 'productGTIN'
FINAL_LOCATION_ID = 'finalLocationID'
FINAL_LOCATION_NAME = 'finalLocationName'
FINAL_LOCATION_TYPE = 'finalLocationType'
ARRIVAL_DATE = 'arrivalDate'
INGREDIENT_EPC = 'ingredientEPC'
INGREDIENT_NAME = 'ingredientName'
INGREDIENT_GTIN = 'ingredientGTIN'
SOURCE_LOCATION_ID = 'sourceLocationID'
SOURCE_LOCATION_NAME = 'sourceLocationName'
SOURCE_LOCATION_TYPE = 'sourceLocationType'
CREATION_DATE = 'creationDate'

# Output order of the report; field -> header
COLUMNS = OrderedDict([
    (PRODUCT_EPC, 'Finished Product (EPC)'),
    (PRODUCT_NAME, 'Finished Product Name'),
    (PRODUCT_GTIN, 'Finished Product GTIN'),
    (FINAL_LOCATION_ID, 'Final Location (GLN)'),
    (FINAL_LOCATION_NAME, 'Final Location Name'),
    (FINAL_LOCATION_TYPE, 'Final Location Type'),
    (ARRIVAL_DATE, 'Arrival Date'),
    (INGREDIENT_EPC, 'Ingredient (EPC)'),
    (INGREDIENT_NAME, 'Ingredient Name'),
    (INGREDIENT_GTIN, 'Ingredient GTIN'),
    (SOURCE_LOCATION_ID, 'Source Location (GLN)'),
    (SOURCE_LOCATION_NAME, 'Source Location Name'),
    (SOURCE_LOCATION_TYPE, 'Source Location Type'),
    (CREATION_DATE, 'Creation Date'),
])

HEADERS = list(COLUMNS.values())

TOO_LARGE_MESSAGE = 'Dataset returned is too large. Try narrowing your search using the date filters.'


def render_value(value: Any) -> str:
    if value is None or value == '':
        return ''
    if isinstance(value, datetime):
        return value.isoformat()
    return str(value)


class ReportRow(OrderedDict):
    """One output row. Every column is present, unset ones hold None."""

    def __init__(self):
        super().__init__((field, None) for field in COLUMNS)

    def __setitem__(self, key, value):
        if key not in COLUMNS:
            raise KeyError(f"unknown report field: {key}")
        super().__setitem__(key, value)

    def copy(self) -> "ReportRow":
        """Shallow copy"""
        row = ReportRow()
        for key, value in self.items():
            row[key] = value
        return row

    def set_final_location(self, result: LocationResult):
        self[ARRIVAL_DATE] = result.time
        self[FINAL_LOCATION_ID] = result.location_id
        self[FINAL_LOCATION_NAME] = result.name
        self[FINAL_LOCATION_TYPE] = result.role_type

    def set_source_location(self, result: LocationResult):
        self[CREATION_DATE] = result.time
        self[SOURCE_LOCATION_ID] = result.location_id
        self[SOURCE_LOCATION_NAME] = result.name
        self[SOURCE_LOCATION_TYPE] = result.role_type

    def rendered(self) -> List[str]:
        """Values in column order, absent ones as empty strings"""
        return [render_value(self[field]) for field in COLUMNS]


class IngredientSourcesReport:
    """Headers plus rows; an advisory report carries a message instead of data"""

    def __init__(self, headers: List[str], rows: List[ReportRow], advisory: Optional[str] = None):
        self.headers = headers
        self.rows = rows
        self.advisory = advisory

    @classmethod
    def empty(cls) -> "IngredientSourcesReport":
        return cls(list(HEADERS), [])

    @classmethod
    def too_large(cls) -> "IngredientSourcesReport":
        return cls([], [], advisory=TOO_LARGE_MESSAGE)

    @property
    def is_advisory(self) -> bool:
        return self.advisory is not None

    def values(self) -> List[List[str]]:
        if self.is_advisory:
            return [[self.advisory]]
        return [row.rendered() for row in self.rows]

    def to_frame(self) -> pd.DataFrame:
        if self.is_advisory:
            return pd.DataFrame({'message': [self.advisory]})
        return pd.DataFrame(self.values(), columns=self.headers)

    def to_csv(self, path_or_buffer=None):
        """Write the report as CSV; returns the text when no target is given"""
        return self.to_frame().to_csv(path_or_buffer, index=False, header=not self.is_advisory)
