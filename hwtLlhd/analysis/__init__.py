"""
Analyses of the processes.

* :mod:`hwtLlhd.analysis.cfg`: control flow graph, block orders, loops, unreachable blocks
* :mod:`hwtLlhd.analysis.dominators`: dominator tree
* :mod:`hwtLlhd.analysis.controlPredicates`: condition under which the block is executed
* :mod:`hwtLlhd.analysis.drives`: drives of every signal with its predicates
* :mod:`hwtLlhd.analysis.consistencyCheck`: check of IR invariants
* :mod:`hwtLlhd.analysis.interpret`: reference interpreter of the IR
"""
