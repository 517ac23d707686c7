from typing import Sequence, Union

from hwt.hdl.types.bits import Bits
from hwt.hdl.types.hdlType import HdlType
from hwt.hdl.value import HValue


class LlhdCompType():
    """
    Type of a unit, ordered types of input ports and ordered types of output ports.
    """
    __slots__ = ("inputs", "outputs")

    def __init__(self, inputs: Sequence[HdlType], outputs: Sequence[HdlType]):
        for t in inputs:
            assert isinstance(t, Bits), ("Only integer ports are supported", t)
        for t in outputs:
            assert isinstance(t, Bits), ("Only integer ports are supported", t)
        self.inputs = tuple(inputs)
        self.outputs = tuple(outputs)

    def __eq__(self, other):
        return self is other or (
            isinstance(other, LlhdCompType) and
            self.inputs == other.inputs and
            self.outputs == other.outputs
        )

    def __hash__(self):
        return hash((self.__class__, self.inputs, self.outputs))

    def __repr__(self):
        ins = ", ".join(typeToStr(t) for t in self.inputs)
        outs = ", ".join(typeToStr(t) for t in self.outputs)
        return f"<{self.__class__.__name__:s} ({ins:s}) ({outs:s})>"


def typeToStr(t: Union[HdlType, LlhdCompType]) -> str:
    if isinstance(t, Bits):
        return f"i{t.bit_length():d}"
    elif isinstance(t, LlhdCompType):
        ins = ", ".join(typeToStr(_t) for _t in t.inputs)
        outs = ", ".join(typeToStr(_t) for _t in t.outputs)
        return f"({ins:s}) ({outs:s})"
    else:
        raise NotImplementedError(t)


def isBoolType(t: HdlType) -> bool:
    return isinstance(t, Bits) and t.bit_length() == 1


def isSameType(t0: HdlType, t1: HdlType) -> bool:
    """
    Structural type equality, integer types are equal if they have same width.
    """
    if t0 is t1:
        return True
    if isinstance(t0, Bits) and isinstance(t1, Bits):
        return t0.bit_length() == t1.bit_length()
    return t0 == t1


def constToInt(c: HValue):
    """
    :return: python int or None if the constant is not fully valid (undefined)
    """
    if c._is_full_valid():
        return int(c)
    return None
