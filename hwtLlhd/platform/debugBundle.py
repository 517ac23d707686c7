from pathlib import Path
from typing import Tuple, Type, Optional, Union, Set

from hwtLlhd.platform.fileUtils import outputFileGetter
from hwtLlhd.translation.toAsm import LlhdPassDumpAsm
from hwtLlhd.translation.toGraphviz import LlhdPassDumpCfgDot

DebugId = Tuple[Type, Optional[str]]


def _runOnModuleGetter(p):
    return p.runOnModule


class LlhdDebugBundle():
    """
    :note: if the number N in DBG_N_* is the same it means that these debug options are working with the same input
    """
    DEFAULT_DEBUG_DIR = "tmp"

    DBG_0_input = (LlhdPassDumpAsm, "00.input.llhd")  # module before any transformation
    DBG_0_inputCfg = (LlhdPassDumpCfgDot, "00.inputCfg.dot")  # CFG of processes before any transformation
    DBG_1_desequentializeTrace = (None, "01.desequentialize.trace.txt")  # latch/comb decisions, dropped blocks
    DBG_1_desequentialized = (LlhdPassDumpAsm, "01.desequentialized.llhd")
    DBG_2_inlineTrace = (None, "02.inline.trace.txt")  # trace of instance inlining
    DBG_2_inlined = (LlhdPassDumpAsm, "02.inlined.llhd")  # final module

    ALL = None
    NONE = set()
    ALL_RELIABLE = {
        DBG_0_input,
        DBG_0_inputCfg,
        DBG_1_desequentializeTrace,
        DBG_1_desequentialized,
        DBG_2_inlineTrace,
        DBG_2_inlined,
    }
    DEFAULT = NONE

    # bundle for debugging of the desequentialization
    DBG_DESEQUENTIALIZE = {
        DBG_0_input,
        DBG_0_inputCfg,
        DBG_1_desequentializeTrace,
        DBG_1_desequentialized,
    }

    def __init__(self, debugDir: Optional[Union[str, Path]], filter_: Optional[Set[DebugId]]):
        """
        :attention: if debugDir is None no debug option will be enabled
        """
        self.dir = None if debugDir is None else Path(debugDir)
        self.filter = filter_
        self.firstRun = True
        self.runConsistencyChecks = True

    def isActivated(self, item: DebugId):
        return self.filter is None or item in self.filter

    def runDebugIfEnabled(self, id_: Union[DebugId, Type], applyArgs: tuple,
                          clsOverride: Optional[Type]=None,
                          applyFnGetter=_runOnModuleGetter,
                          constructorArgs: tuple=(),
                          constructorKwargs: Optional[dict]=None):
        debugDir = self.dir
        isDebugId = isinstance(id_, tuple)
        if debugDir is not None and (not isDebugId or self.isActivated(id_)):
            if self.firstRun:
                if not debugDir.exists():
                    debugDir.mkdir(parents=True)
                self.firstRun = False

            if constructorKwargs is None:
                constructorKwargs = {}

            if not isDebugId:
                assert clsOverride is None
                cls = id_
            elif clsOverride is None:
                cls = id_[0]
            else:
                cls = clsOverride

            if not isDebugId:
                obj = cls(*constructorArgs, **constructorKwargs)
            else:
                _, fileNameSuffix = id_
                if fileNameSuffix is not None:
                    outStreamGetter = outputFileGetter(debugDir, fileNameSuffix)
                    obj = cls(outStreamGetter, *constructorArgs, **constructorKwargs)
                else:
                    obj = cls(*constructorArgs, **constructorKwargs)

            applyFn = applyFnGetter(obj)
            applyFn(*applyArgs)
