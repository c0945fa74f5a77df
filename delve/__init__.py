"""Procedural area generation.

delve turns a declarative generator template plus a seed-reproducible random
source into a finished area layout: tile layers, placed props, and placed
encounters. The entry point is :class:`delve.generator.AreaGenerator`.
"""
