from typing import Dict, Sequence, Tuple

from hwt.hdl.types.bits import Bits
from hwt.hdl.types.hdlType import HdlType
from hwtLlhd.ir.types import LlhdCompType


class LlhdContext():
    """
    A pool of types shared by all units of the module.

    :ivar _intTypes: cache of integer types so the values of the same shape share the type object
    :ivar _compTypes: cache of unit types
    """

    def __init__(self):
        self._intTypes: Dict[int, Bits] = {}
        self._compTypes: Dict[Tuple[Tuple[HdlType, ...], Tuple[HdlType, ...]], LlhdCompType] = {}

    def intType(self, width: int) -> Bits:
        assert width > 0, width
        try:
            return self._intTypes[width]
        except KeyError:
            pass
        t = Bits(width)
        self._intTypes[width] = t
        return t

    def compType(self, inputs: Sequence[HdlType], outputs: Sequence[HdlType]) -> LlhdCompType:
        k = (tuple(inputs), tuple(outputs))
        try:
            return self._compTypes[k]
        except KeyError:
            pass
        t = LlhdCompType(*k)
        self._compTypes[k] = t
        return t
