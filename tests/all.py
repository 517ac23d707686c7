#!/usr/bin/env python3
# -*- coding: utf-8 -*-

import sys
from unittest import TestLoader, TextTestRunner, TestSuite

from tests.analysis.analyses_test import LlhdAnalysisCfg_TC, LlhdAnalysisDominators_TC, LlhdPredicate_TC, \
    LlhdAnalysisControlPredicates_TC, LlhdAnalysisDrives_TC
from tests.analysis.consistencyCheck_test import LlhdPassConsistencyCheck_TC
from tests.analysis.interpret_test import LlhdInterpreter_TC
from tests.ir.irConstruction_test import LlhdIrConstruction_TC
from tests.platform.platform_test import LlhdPlatform_TC
from tests.transformation.desequentialize_test import Desequentialize_TC
from tests.transformation.inlineInstance_test import InlineInstance_TC
from tests.translation.toAsm_test import LlhdToAsm_TC
from tests.translation.toGraphviz_test import LlhdProcessToGraphviz_TC


def testSuiteFromTCs(*tcs):
    for tc in tcs:
        tc._multiprocess_can_split_ = True
    loader = TestLoader()
    loadedTcs = [loader.loadTestsFromTestCase(tc) for tc in tcs]
    suite = TestSuite(loadedTcs)
    return suite


suite = testSuiteFromTCs(
    LlhdIrConstruction_TC,
    LlhdAnalysisCfg_TC,
    LlhdAnalysisDominators_TC,
    LlhdPredicate_TC,
    LlhdAnalysisControlPredicates_TC,
    LlhdAnalysisDrives_TC,
    LlhdPassConsistencyCheck_TC,
    LlhdInterpreter_TC,
    LlhdToAsm_TC,
    LlhdProcessToGraphviz_TC,
    Desequentialize_TC,
    InlineInstance_TC,
    LlhdPlatform_TC,
)


def main():
    # runner = TextTestRunner(verbosity=2, failfast=True)
    runner = TextTestRunner(verbosity=2)

    if len(sys.argv) > 1 and sys.argv[1] == "--singlethread":
        useParallelTest = False
    else:
        try:
            from concurrencytest import ConcurrentTestSuite, fork_for_tests
            useParallelTest = True
        except ImportError:
            # concurrencytest is not installed, use regular test runner
            useParallelTest = False

    if useParallelTest:
        concurrent_suite = ConcurrentTestSuite(suite, fork_for_tests())
        res = runner.run(concurrent_suite)
    else:
        res = runner.run(suite)
    if not res.wasSuccessful():
        sys.exit(1)


if __name__ == '__main__':
    main()
