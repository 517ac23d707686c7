from typing import Optional, Union

from hwt.hdl.types.hdlType import HdlType
from hwt.pyUtils.uniqList import UniqList


class LlhdValue():
    """
    Base class for anything which can be used as an operand of the instruction.

    :ivar _dtype: type of the value (None for values without data, e.g. drive, branch)
    :ivar _name: optional name used only for readability of the code
    :ivar users: instructions which are using this value as an operand
    """

    def __init__(self, dtype: Optional[HdlType], name: Optional[str]=None):
        self._dtype = dtype
        self._name = name
        self.users: UniqList["LlhdInstr"] = UniqList()

    def setName(self, name: Optional[str]):
        self._name = name

    def replaceAllUsesWith(self, replacement: Union["LlhdValue", "HValue"]):
        for u in tuple(self.users):
            u.replaceInput(self, replacement)

    def __repr__(self):
        return f"<{self.__class__.__name__:s} {self._name}>"


class LlhdArgument(LlhdValue):
    """
    Input or output port of the unit.

    :ivar unit: unit which owns this port
    :ivar index: index of the port in inputs or outputs of the unit
    """

    def __init__(self, unit: "LlhdUnit", dtype: HdlType, index: int, isOutput: bool, name: Optional[str]=None):
        super(LlhdArgument, self).__init__(dtype, name)
        self.unit = unit
        self.index = index
        self.isOutput = isOutput

    def __repr__(self):
        d = "out" if self.isOutput else "in"
        return f"<{self.__class__.__name__:s} {d:s}{self.index:d} {self._name}>"


def indexOfValue(values, v) -> int:
    """
    :note: identity based, list.index would invoke overloaded operators of HValue
    """
    for i, o in enumerate(values):
        if o is v:
            return i
    raise ValueError(v, "not in", values)
