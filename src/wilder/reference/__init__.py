"""Static reference data.

Values that don't change with API calls: default region, bounding boxes,
and the km-per-degree approximation.

Adding a new module:
1. Create ``reference/{name}.py`` with constants/dataclasses
2. Re-export from this ``__init__.py``
"""

from wilder.reference.geography import DEFAULT_CENTER_LAT as DEFAULT_CENTER_LAT
from wilder.reference.geography import DEFAULT_CENTER_LON as DEFAULT_CENTER_LON
from wilder.reference.geography import DEFAULT_REGION_NAME as DEFAULT_REGION_NAME
from wilder.reference.geography import KM_PER_DEGREE as KM_PER_DEGREE
from wilder.reference.geography import BoundingBox as BoundingBox
