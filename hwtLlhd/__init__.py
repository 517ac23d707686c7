"""
hwtLlhd
=======

hwtLlhd is a library which provides an intermediate representation for LLHD-like hardware descriptions
and the transformations which convert the procedural part of the description to a structural one.

* :mod:`hwtLlhd.ir`: The IR objects. The :class:`~hwtLlhd.ir.module.LlhdModule` contains units.
  The unit is either an entity (a set of continuously evaluated instructions) or a process
  (a control flow graph of basic blocks which is re-evaluated from the entry on every change of any read value).

* :mod:`hwtLlhd.analysis`: Analysis of the process control flow (dominators, predicates under which
  the block is executed, drives of the signals), consistency check and a reference interpreter.

* :mod:`hwtLlhd.transformation`: Desequentialization of processes (conversion of the process to a single
  block without any branch, latches are inferred for signals which are not driven on every path)
  and inlining of the instances of such processes into parent entity.

* :mod:`hwtLlhd.translation`: Conversion of the IR to a text or Graphviz for debugging.

* :mod:`hwtLlhd.platform`: The compilation pipeline and its debug configuration.
"""
