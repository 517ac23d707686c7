from pathlib import Path
from typing import Optional, Union, Set

from hwt.synthesizer.dummyPlatform import DummyPlatform
from hwtLlhd.analysis.consistencyCheck import LlhdPassConsistencyCheck
from hwtLlhd.debugTracer import DebugTracer
from hwtLlhd.ir.module import LlhdModule
from hwtLlhd.platform.debugBundle import LlhdDebugBundle, DebugId
from hwtLlhd.platform.fileUtils import outputFileGetter
from hwtLlhd.transformation.desequentialize import LlhdPassDesequentialize
from hwtLlhd.transformation.inlineInstance import LlhdPassInlineInstances


class LlhdPlatform(DummyPlatform):
    """
    A container of the configuration of the pass pipeline.

    :ivar allowLatches: if False the desequentialization raises UndrivenSignal instead of latch inference
    :ivar skipUnsupportedProcesses: if True the processes with loops or wait are left unmodified
        instead of raising UnsupportedControlFlow
    :ivar inlineInstances: if True the instances of the desequentialized processes are inlined into entities
    """

    def __init__(self, debugDir: Optional[Union[str, Path]]=LlhdDebugBundle.DEFAULT_DEBUG_DIR,
                 debugFilter: Optional[Set[DebugId]]=LlhdDebugBundle.DEFAULT,
                 allowLatches: bool=True,
                 skipUnsupportedProcesses: bool=False,
                 inlineInstances: bool=True):
        DummyPlatform.__init__(self)
        self._debug = LlhdDebugBundle(debugDir, debugFilter)
        self.allowLatches = allowLatches
        self.skipUnsupportedProcesses = skipUnsupportedProcesses
        self.inlineInstances = inlineInstances

    def _getDebugTracer(self, scopeName: str, dbgId: DebugId):
        dbgDir = self._debug.dir
        if dbgDir and self._debug.isActivated(dbgId):
            if not dbgDir.exists():
                dbgDir.mkdir(parents=True)
            traceFile, doCloseTrace = outputFileGetter(dbgDir, dbgId[1])(scopeName)
            dbgTracer = DebugTracer(traceFile)
        else:
            dbgTracer = DebugTracer(None)
            doCloseTrace = False
        return dbgTracer, doCloseTrace

    def _runConsistencyCheck(self, module: LlhdModule):
        if self._debug.runConsistencyChecks:
            LlhdPassConsistencyCheck().runOnModule(module)

    def compileModule(self, module: LlhdModule) -> LlhdPassDesequentialize:
        """
        Run the pipeline: consistency check, desequentialization of all processes,
        inlining of the instances of the processes and the final consistency check.

        :return: the desequentialization pass with the results for each process
        """
        D = LlhdDebugBundle
        DBG = self._debug.runDebugIfEnabled
        self._runConsistencyCheck(module)
        DBG(D.DBG_0_input, (module,))
        DBG(D.DBG_0_inputCfg, (module,))

        dbgTracer, doCloseTrace = self._getDebugTracer(module.name, D.DBG_1_desequentializeTrace)
        try:
            deseq = LlhdPassDesequentialize(dbgTracer, self.allowLatches, self.skipUnsupportedProcesses)
            deseq.runOnModule(module)
        finally:
            if doCloseTrace:
                dbgTracer.close()
        DBG(D.DBG_1_desequentialized, (module,))

        if self.inlineInstances:
            dbgTracer, doCloseTrace = self._getDebugTracer(module.name, D.DBG_2_inlineTrace)
            try:
                LlhdPassInlineInstances(dbgTracer).runOnModule(module)
            finally:
                if doCloseTrace:
                    dbgTracer.close()
            DBG(D.DBG_2_inlined, (module,))

        self._runConsistencyCheck(module)
        return deseq
