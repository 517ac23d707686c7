"""
Configuration of the pass pipeline and of the debug outputs.
"""
