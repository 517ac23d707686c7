from collections import OrderedDict
from typing import Type, Union

from hwtLlhd.analysis.analysisPass import LlhdAnalysisPass


class AnalysisCache():
    """
    A pass manager for analysis passes
    """

    def __init__(self,):
        self._analysis_cache = OrderedDict()

    def invalidateAnalysis(self, analysis_cls: Type[LlhdAnalysisPass]):
        a = self._analysis_cache.pop(analysis_cls, None)
        if a is not None:
            a.invalidate(self)

    def invalidateAll(self):
        for k in reversed(tuple(self._analysis_cache.keys())):
            self.invalidateAnalysis(k)

    def getAnalysisIfAvailable(self, analysis_cls: Type[LlhdAnalysisPass]):
        try:
            return self._analysis_cache[analysis_cls]
        except KeyError:
            return None

    def _runAnalysisImpl(self, a: LlhdAnalysisPass):
        raise NotImplementedError()

    def getAnalysis(self, analysis_cls: Union[Type[LlhdAnalysisPass], LlhdAnalysisPass]):
        if isinstance(analysis_cls, LlhdAnalysisPass):
            a = analysis_cls
            analysis_cls = a.__class__
        else:
            a = None

        try:
            return self._analysis_cache[analysis_cls]
        except KeyError:
            pass

        if a is None:
            a = analysis_cls()

        self._analysis_cache[analysis_cls] = a
        self._runAnalysisImpl(a)
        return a
