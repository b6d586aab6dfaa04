from enum import Enum
from typing import Protocol


class UnitOfMeasure(str, Enum):
    EACH = "EACH"
    INNER_PACK = "INNER_PACK"
    OUTER_PACK = "OUTER_PACK"


class PackRatios(Protocol):
    units_per_inner_pack: int
    inner_packs_per_outer_pack: int


def to_base_units(quantity: int, unit: UnitOfMeasure | str, product: PackRatios) -> int:
    """Convert a quantity in any pack unit of ``product`` to base units.

    EACH is the identity, INNER_PACK multiplies by units-per-inner-pack and
    OUTER_PACK additionally by inner-packs-per-outer-pack.
    """
    unit = UnitOfMeasure(unit)
    if unit is UnitOfMeasure.INNER_PACK:
        return quantity * product.units_per_inner_pack
    if unit is UnitOfMeasure.OUTER_PACK:
        return quantity * product.units_per_inner_pack * product.inner_packs_per_outer_pack
    return quantity
