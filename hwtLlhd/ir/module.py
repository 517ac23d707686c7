from io import StringIO
from typing import Dict, List, Optional, Generator

from hwtLlhd.ir.context import LlhdContext
from hwtLlhd.ir.unit import LlhdUnit, LlhdEntity, LlhdProcess
from hwtLlhd.ir.value import indexOfValue


class LlhdModule():
    """
    Container of units, the names of units are unique.

    :ivar ctx: pool of types shared by all units
    :ivar _dbgLogPassExec: optional stream where execution of passes is logged
    """

    def __init__(self, name: str, ctx: Optional[LlhdContext]=None):
        self.name = name
        self.ctx = ctx if ctx is not None else LlhdContext()
        self.units: List[LlhdUnit] = []
        self._unitsByName: Dict[str, LlhdUnit] = {}
        self._dbgLogPassExec: Optional[StringIO] = None

    def appendUnit(self, unit: LlhdUnit):
        assert unit.parent is None, ("Unit is already placed in module", unit, unit.parent)
        assert unit._name not in self._unitsByName, ("Unit name has to be unique in module", unit._name, self.name)
        unit.parent = self
        self.units.append(unit)
        self._unitsByName[unit._name] = unit

    def removeUnit(self, unit: LlhdUnit):
        assert unit.parent is self, (unit, unit.parent, self)
        assert not unit.users, ("Unit is still instantiated", unit, unit.users)
        self.units.pop(indexOfValue(self.units, unit))
        self._unitsByName.pop(unit._name)
        unit.parent = None

    def getUnit(self, name: str) -> LlhdUnit:
        return self._unitsByName[name]

    def iterProcesses(self) -> Generator[LlhdProcess, None, None]:
        for u in self.units:
            if isinstance(u, LlhdProcess):
                yield u

    def iterEntities(self) -> Generator[LlhdEntity, None, None]:
        for u in self.units:
            if isinstance(u, LlhdEntity):
                yield u

    def __repr__(self):
        return f"<{self.__class__.__name__:s} {self.name:s}>"
